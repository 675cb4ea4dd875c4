"""
Product image ingestion for the retail back office.

Pipeline per uploaded image:
    1. Validate: accepted type, per-file size, collection capacity
    2. Decode, crop/downscale/rotate, re-encode (WEBP, JPEG or PNG)
    3. Track the item through its lifecycle and upload it

Re-transforms (rotate, square-crop toggle) always start from the original bytes.
"""

__version__ = "1.0.0"

from .config import IngestConfig, TargetFormat
from .s3_config import S3Config
from .s3_client import S3Client
from .errors import (
    IngestError,
    ConfigError,
    ValidationError,
    ValidationReason,
    DecodeError,
    EncodeError,
    TransportError,
    InvalidTransitionError,
    HandleRevokedError,
)
from .source_file import SourceFile
from .transform_spec import TransformSpec, TransformResult
from .item import Item, ItemStatus
from .validator import Validator
from .decoder import Decoder
from .transformer import Transformer, TransformPlan, plan_transform
from .encoder import Encoder
from .handles import HandleRegistry
from .collection import ItemCollection
from .ingestion_stats import IngestionStats
from .ingestion_progress import IngestionProgress
from .transport import Transport, SimulatedTransport, LocalTransport, S3Transport
from .lifecycle import LifecycleManager
from .orchestrator import BatchOrchestrator
from .uploader import ImageUploader
from .reporter import Reporter, format_file_size

__all__ = [
    "IngestConfig",
    "TargetFormat",
    "S3Config",
    "S3Client",
    "IngestError",
    "ConfigError",
    "ValidationError",
    "ValidationReason",
    "DecodeError",
    "EncodeError",
    "TransportError",
    "InvalidTransitionError",
    "HandleRevokedError",
    "SourceFile",
    "TransformSpec",
    "TransformResult",
    "Item",
    "ItemStatus",
    "Validator",
    "Decoder",
    "Transformer",
    "TransformPlan",
    "plan_transform",
    "Encoder",
    "HandleRegistry",
    "ItemCollection",
    "IngestionStats",
    "IngestionProgress",
    "Transport",
    "SimulatedTransport",
    "LocalTransport",
    "S3Transport",
    "LifecycleManager",
    "BatchOrchestrator",
    "ImageUploader",
    "Reporter",
    "format_file_size",
]
