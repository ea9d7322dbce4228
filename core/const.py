__all__ = [
    "DEFAULT_TAG",
    "SECRET",
    "DATABASE_PASSWORD_ENV"
]

DEFAULT_TAG = 'DEFAULT'
# placeholder in the database URL, replaced by the password from the environment
SECRET = 'SECRET'
DATABASE_PASSWORD_ENV = 'LSO_DATABASE_PASSWORD'
