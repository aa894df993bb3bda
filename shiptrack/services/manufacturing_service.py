"""
Manufacturing Service - product line forms and DP-numbered batches
"""
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from typing import Dict, List, Optional
import logging

from shiptrack.core.context import RequestContext
from shiptrack.core.exceptions import (
    NotFoundError, SequenceConflictError, StorageError, ValidationError,
)
from shiptrack.models import ManufacturingBatch
from shiptrack.schemas.manufacturing import BatchCreate
from shiptrack.services.sequence_service import SequenceAllocator, SCOPE_DP_NUMBER

logger = logging.getLogger(__name__)

# Product line code -> display name and the components its form collects
PRODUCT_LINES: Dict[str, dict] = {
    "vitamin-d": {
        "name": "Vitamin D",
        "components": [
            "Vitamin D3",
            "Medium Chain Triglycerides",
            "Tocopherol",
            "Sunflower Oil",
            "Mixed Tocopherols",
        ],
    },
    "menthol": {"name": "Menthol", "components": ["Menthol Crystal"]},
    "dha": {"name": "DHA", "components": ["DHA Oil"]},
    "tummy-relief": {"name": "Tummy Relief", "components": ["Fennel Extract"]},
    "vitamin-d-k": {"name": "Vitamin D + K", "components": ["Vitamin D3", "Vitamin K2"]},
}

COMPONENT_FIELDS = ("lot_number", "item_number", "exp_date", "release_date", "quantity")


class ManufacturingService:
    """Manufacturing business logic"""

    @staticmethod
    def get_product_lines() -> List[dict]:
        return [
            {"code": code, "name": line["name"], "components": list(line["components"])}
            for code, line in PRODUCT_LINES.items()
        ]

    @staticmethod
    def next_dp_number(db: Session) -> str:
        """DP number the next saved batch will most likely get"""
        return SequenceAllocator.format_dp_number(
            SequenceAllocator.peek_next(db, SCOPE_DP_NUMBER)
        )

    @staticmethod
    def get_batches(db: Session, product_line: Optional[str] = None) -> List[ManufacturingBatch]:
        query = db.query(ManufacturingBatch)
        if product_line:
            query = query.filter(ManufacturingBatch.product_line == product_line)
        return query.order_by(ManufacturingBatch.dp_sequence.desc()).all()

    @staticmethod
    def create_batch(db: Session, ctx: RequestContext, data: BatchCreate) -> ManufacturingBatch:
        """Validate every component of the product line and save under a fresh DP number"""
        line = PRODUCT_LINES.get(data.product_line)
        if line is None:
            raise NotFoundError(f"Unknown product line: {data.product_line}")

        unknown = sorted(set(data.components) - set(line["components"]))
        if unknown:
            raise ValidationError(
                f"Components not used by {line['name']}: {', '.join(unknown)}",
                missing_fields=unknown,
            )

        missing = []
        components = {}
        for name in line["components"]:
            entry = data.components.get(name)
            values = entry.model_dump(mode="json") if entry else {}
            for field in COMPONENT_FIELDS:
                if values.get(field) in (None, ""):
                    missing.append(f"{name}.{field}")
            components[name] = values
        if missing:
            raise ValidationError.missing(missing)

        try:
            sequence = SequenceAllocator.next_sequence(db, SCOPE_DP_NUMBER)
            batch = ManufacturingBatch(
                dp_number=SequenceAllocator.format_dp_number(sequence),
                dp_sequence=sequence,
                product_line=data.product_line,
                manufacturing_date=data.manufacturing_date,
                components=components,
                created_by=ctx.user_id,
                is_test_data=ctx.is_test_environment,
            )
            db.add(batch)
            db.commit()
        except IntegrityError as e:
            db.rollback()
            raise SequenceConflictError("Another batch took this DP number, please save again") from e
        except SequenceConflictError:
            db.rollback()
            raise
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Error saving {line['name']} batch: {e}")
            raise StorageError(f"Could not save batch: {e.__class__.__name__}") from e

        db.refresh(batch)
        logger.info(f"{line['name']} batch {batch.dp_number} saved by {ctx.actor_name}")
        return batch
