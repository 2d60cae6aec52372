# models/project.py
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum


class ProjectType(str, Enum):
    FRONTEND = "frontend"
    BACKEND = "backend"
    FULLSTACK = "fullstack"


class ProjectStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    ON_HOLD = "on-hold"


class PaymentStatus(str, Enum):
    UNPAID = "unpaid"
    PARTIAL = "partial"
    PAID = "paid"


class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


# statuses that count as "active" on dashboards and portals
ACTIVE_STATUSES = (ProjectStatus.PENDING.value, ProjectStatus.IN_PROGRESS.value)


@dataclass(frozen=True)
class ProjectInputs:
    """
    Raw pricing inputs of a project.

    Only the fields of the selected pricing mode matter:
    - frontend: total_pages / completed_pages / price_per_page
    - backend, fullstack: fixed_price / completion_percentage
    extra_hours * extra_hour_rate is added in every mode.
    None means "not filled in" and counts as zero.
    """
    project_type: ProjectType = ProjectType.FRONTEND
    total_pages: int | None = None
    completed_pages: int | None = None
    price_per_page: Decimal | None = None
    fixed_price: Decimal | None = None
    completion_percentage: int | None = None
    extra_hours: Decimal | None = None
    extra_hour_rate: Decimal | None = None

    @property
    def is_page_priced(self) -> bool:
        return self.project_type == ProjectType.FRONTEND

    @classmethod
    def from_row(cls, row: dict) -> "ProjectInputs":
        """Build inputs from a `projects` row (dict_row) or any dict with the same keys."""
        return cls(
            project_type=ProjectType(row.get("project_type") or ProjectType.FRONTEND.value),
            total_pages=row.get("total_pages"),
            completed_pages=row.get("completed_pages"),
            price_per_page=row.get("price_per_page"),
            fixed_price=row.get("fixed_price"),
            completion_percentage=row.get("completion_percentage"),
            extra_hours=row.get("extra_hours"),
            extra_hour_rate=row.get("extra_hour_rate"),
        )

    def as_columns(self) -> dict:
        """
        Column values to persist. Fields of the other pricing mode are
        written as NULL so a type change never leaves stale prices behind.
        """
        page_mode = self.is_page_priced
        return {
            "project_type": self.project_type.value,
            "total_pages": self.total_pages if page_mode else None,
            "completed_pages": self.completed_pages if page_mode else None,
            "price_per_page": self.price_per_page if page_mode else None,
            "fixed_price": None if page_mode else self.fixed_price,
            "completion_percentage": None if page_mode else self.completion_percentage,
            "extra_hours": self.extra_hours or Decimal("0"),
            "extra_hour_rate": self.extra_hour_rate or Decimal("0"),
        }


@dataclass(frozen=True)
class PricingResult:
    total_amount: Decimal
    payment_status: PaymentStatus
