"""
auth_service package

Authentication microservice. It includes:

- FastAPI application and process bootstrap (`main.py`, `__main__.py`)
- Settings loaded from the environment (`config.py`)
- SQLAlchemy models and database connection (`models.py`, `db.py`)
- Password hashing and JWT logic (`auth.py`)
- Pydantic schemas (`schemas.py`)
- Routers mounted by the application (`routes/`)
"""
