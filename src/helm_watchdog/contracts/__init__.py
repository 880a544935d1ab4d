from .validate import IMAGE_VALIDATION_SCHEMA, load_schema, schema_errors

__all__ = ["IMAGE_VALIDATION_SCHEMA", "load_schema", "schema_errors"]
