from datetime import datetime
from typing import Optional, Dict, Any, Tuple


class BaseModel:
    # Attributes populated at read time that are never written back
    RELATED_FIELDS: Tuple[str, ...] = ()

    @staticmethod
    def parse_datetime(value: Any) -> Any:
        if value and isinstance(value, str):
            try:
                return datetime.fromisoformat(value.replace('Z', "+00:00"))
            except ValueError:
                return value
        return value

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]):
        if not data:
            return None

        instance = cls()
        for key, value in data.items():
            # Handle datetime conversion
            if key.endswith('_at'):
                value = cls.parse_datetime(value)

            # Only plain attributes; related data and properties are skipped
            if key in vars(instance) and key not in cls.RELATED_FIELDS:
                setattr(instance, key, value)

        return instance

    def to_dict(self) -> Dict[str, Any]:
        """Row representation, without related data."""
        result = {}
        for attr_name, attr_value in self.__dict__.items():
            if attr_name.startswith('_') or attr_name in self.RELATED_FIELDS:
                continue

            # Convert datetime to ISO string
            if isinstance(attr_value, datetime):
                attr_value = attr_value.isoformat()

            result[attr_name] = attr_value

        return result
