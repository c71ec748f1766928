"""Database plumbing shared by the SQLAlchemy adapters: engine, metadata, migrations."""
