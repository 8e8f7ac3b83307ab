import base64
import json
from datetime import date, datetime
from enum import Enum
from typing import Any


class EnhancedJSONEncoder(json.JSONEncoder):
    def default(self, obj):
        if isinstance(obj, Enum):
            return obj.value
        elif isinstance(obj, (datetime, date)):
            return obj.isoformat()
        elif isinstance(obj, (bytes, bytearray)):
            return base64.b64encode(obj).decode("ascii")
        elif isinstance(obj, BaseException):
            return f"{type(obj).__name__}: {obj}"
        # Pydantic models, resource models included
        elif hasattr(obj, "model_dump"):
            return obj.model_dump(mode="json", by_alias=True)
        elif hasattr(obj, "__dict__"):
            return obj.__dict__
        return super().default(obj)


def dumps(obj: Any, **kwargs) -> str:
    """JSON dumps with Enum, bytes and datetime support."""
    return json.dumps(obj, cls=EnhancedJSONEncoder, **kwargs)
