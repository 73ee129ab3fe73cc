import datetime
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping, Optional

VALID = "valid"
EXPIRED = "expired"


def parse_support_date(value: Any) -> Optional[datetime.date]:
    """Calendar date of a `supported_until` value, or None when it cannot be read.

    Envato sends ISO timestamps with an offset ("2017-03-10T00:00:00+11:00");
    only the date part is kept, in the timezone it was issued in.
    """
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value
    if not isinstance(value, str) or len(value) < 10:
        return None
    try:
        return datetime.date.fromisoformat(value[:10])
    except ValueError:
        return None


@dataclass(frozen=True)
class PurchaseRecord:
    code: str
    item_id: Any
    item_name: str
    buyer: str
    supported_until: datetime.date
    raw: Mapping[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_response(cls, code: str, data: Mapping[str, Any]) -> Optional["PurchaseRecord"]:
        supported_until = parse_support_date(data.get("supported_until"))
        if supported_until is None:
            return None
        item_name = data.get("item_name") or (data.get("item") or {}).get("name") or ""
        return cls(
            code=code,
            item_id=data["item_id"],
            item_name=item_name,
            buyer=data.get("buyer") or "",
            supported_until=supported_until,
            raw=MappingProxyType(dict(data)),
        )

    def is_expired(self, today: Optional[datetime.date] = None) -> bool:
        today = today or datetime.date.today()
        if isinstance(today, datetime.datetime):
            today = today.date()
        return self.supported_until < today

    def status(self, today: Optional[datetime.date] = None) -> str:
        return EXPIRED if self.is_expired(today) else VALID

    def to_dict(self, today: Optional[datetime.date] = None):
        return {
            "code": self.code,
            "item_id": self.item_id,
            "item_name": self.item_name,
            "buyer": self.buyer,
            "supported_until": self.supported_until.isoformat(),
            "status": self.status(today),
        }
