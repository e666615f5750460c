"""módulo de base de datos: handle de conexión compartido por los repositorios."""
from typing import Generator, Optional
from contextlib import contextmanager
import hashlib
import logging
import os

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
from sqlalchemy.exc import SQLAlchemyError

from .models import Base

logger = logging.getLogger(__name__)


class Database:
    """Engine + fábrica de sesiones para una base de datos ya configurada.

    La fábrica de sesiones es segura entre hilos; cada operación abre
    su propia sesión con database.session().
    """

    def __init__(self, engine: Engine):
        self.engine = engine
        #expire_on_commit=False: las entidades devueltas siguen legibles tras cerrar la sesión
        self.SessionLocal = sessionmaker(
            bind=engine,
            autoflush=False,
            expire_on_commit=False,
        )

    @classmethod
    def from_url(cls, url: str, echo: bool = False) -> "Database":
        """Crea el engine a partir de una URL, con opciones por dialecto."""
        options = {"echo": echo, "future": True}
        if url.startswith("sqlite"):
            options["connect_args"] = {"check_same_thread": False}
            if ":memory:" in url or url.rstrip("/") == "sqlite:":
                options["poolclass"] = StaticPool
        else:
            options["pool_pre_ping"] = True  #verifica conexiones antes de usarlas
            options["pool_recycle"] = 3600   #recicla conexiones cada hora
        return cls(create_engine(url, **options))

    def connect(self) -> None:
        """Verifica que la base de datos responde.

        Raises:
            SQLAlchemyError: si no se puede abrir una conexión
        """
        with self.engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        logger.info(f"Conexión a base de datos verificada: {self.safe_url}")

    @contextmanager
    def session(self) -> Generator[Session, None, None]:
        """Provee una sesión con rollback automático si hay excepciones."""
        db = self.SessionLocal()
        try:
            yield db
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def create_tables(self) -> None:
        """Crear tablas ORM en la base de datos.

        Raises:
            SQLAlchemyError: Si hay error al crear las tablas
        """
        try:
            Base.metadata.create_all(bind=self.engine)
            logger.info("Tablas de base de datos creadas/verificadas exitosamente")
        except SQLAlchemyError as e:
            logger.error(f"Error al crear tablas: {e}", exc_info=True)
            raise

    def dispose(self) -> None:
        self.engine.dispose()

    @property
    def safe_url(self) -> str:
        """URL de la base de datos sin credenciales."""
        return self.engine.url.render_as_string(hide_password=True)


def hash_password(password: str, salt_hex: Optional[str] = None) -> str:
    """Genera el hash PBKDF2-HMAC-SHA256 en formato 'salt$hash' (ambos hex)."""
    salt = bytes.fromhex(salt_hex) if salt_hex else os.urandom(16)
    dk = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, 100_000)
    return f"{salt.hex()}${dk.hex()}"


def verify_password(stored: str, password: str) -> bool:
    """Verifica que password coincida con el valor 'salt$hash' almacenado."""
    if not stored or "$" not in stored:
        return False
    salt_hex, _ = stored.split("$", 1)
    return hash_password(password, salt_hex) == stored
