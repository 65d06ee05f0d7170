import uuid

TEMP_ID_PREFIX = "temp-"

def new_id() -> str:
    return str(uuid.uuid4())

def new_temp_id() -> str:
    """Locally-unique id for a provisional row that the backend has not confirmed yet."""
    return f"{TEMP_ID_PREFIX}{uuid.uuid4().hex}"

def is_temp_id(value: str) -> bool:
    return value.startswith(TEMP_ID_PREFIX)
