"""HTTP transport: schemas, auth dependency and route modules."""
