class DomainError(Exception):
    def __init__(self, code: str, message: str, details: dict | None = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)


class NotFoundError(DomainError):
    def __init__(self, entity: str, message: str | None = None, details: dict | None = None):
        code = f"NF_{entity.upper()}_001"
        msg = message or f"{entity} not found"
        super().__init__(code, msg, details)


class UnknownMotionError(NotFoundError):
    def __init__(self, motion_id: str):
        super().__init__(
            "motion",
            f'Motion "{motion_id}" not found',
            {"motion_id": motion_id},
        )
        self.motion_id = motion_id


class ValidationError(DomainError):
    def __init__(self, field: str, message: str, details: dict | None = None):
        code = f"VAL_{field.upper()}_001"
        msg = f"Validation failed for {field}: {message}"
        super().__init__(code, msg, details or {"field": field})
