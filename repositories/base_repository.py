"""
Repositorio base con operaciones CRUD comunes:
Este repositorio genérico proporciona operaciones de base de datos estándar
que se reutilizan en todos los repositorios de entidades, más la paginación
y la verificación perezosa de la conexión.
"""

from typing import TypeVar, List, Optional, Type, Any, Dict, Iterable, NoReturn, Sequence
from enum import Enum
import logging
import threading

from sqlalchemy import asc, desc, inspect as sa_inspect, text
from sqlalchemy.orm import load_only

from core.exceptions import (
    AppException,
    ConnectionFailureException,
    ErrorKind,
    NotFoundException,
    ValidationException,
    classify_store_error,
    exception_for_kind,
)
from core.pagination import (
    PaginationOptions,
    PaginationResult,
    PaginatedEntities,
    SortOrder,
    offset_of,
    range_of,
)
from database.db import Database
from repositories.contract import RepositoryContract, EntityId

T = TypeVar('T')


class ConnectionState(str, Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"
    FAILED = "failed"


class _ConnectionAttempt:
    """Un intento de verificación; los hilos que esperan leen su resultado."""

    def __init__(self):
        self.done = threading.Event()
        self.error: Optional[BaseException] = None


_FAILURE_MESSAGES = {
    ErrorKind.CONFLICT: "{entity} violates a uniqueness constraint",
    ErrorKind.CONNECTION_FAILURE: "Database connection error.",
    ErrorKind.VALIDATION_FAILURE: "Invalid data for {entity}",
    ErrorKind.UNKNOWN_STORE_FAILURE: "Database error while running {operation} on {entity}",
}


class BaseRepository(RepositoryContract[T]):
    """
    Repositorio genérico sobre un modelo ORM con columna de identidad `id`.

    Una instancia puede compartirse entre hilos: cada operación abre su propia
    sesión y el único estado mutable es el ciclo de vida de la conexión.
    """

    def __init__(
        self,
        database: Database,
        model_class: Type[T],
        logger: Optional[logging.Logger] = None,
        hidden_fields: Optional[Iterable[str]] = None,
    ):
        """
        Inicializa el repositorio.

        Args:
            database: Handle de base de datos ya configurado
            model_class: Clase del modelo ORM para este repositorio
            logger: Logger para errores y ciclo de vida (por defecto el del módulo)
            hidden_fields: Columnas que no se pueden filtrar, ordenar ni proyectar
        """
        mapper = sa_inspect(model_class)
        if "id" not in mapper.column_attrs.keys():
            raise ValueError(f"{model_class.__name__} has no identity column 'id'")

        self.database = database
        self.model_class = model_class
        self.entity_name = model_class.__name__
        self.logger = logger or logging.getLogger(__name__)
        hidden = frozenset(hidden_fields or ())
        if "id" in hidden:
            raise ValueError("The identity column cannot be hidden")
        self._field_names = frozenset(mapper.column_attrs.keys()) - hidden

        self._state = ConnectionState.UNINITIALIZED
        self._lock = threading.Lock()
        self._in_flight: Optional[_ConnectionAttempt] = None

    # ==================== Connection lifecycle ====================

    @property
    def state(self) -> ConnectionState:
        return self._state

    def ensure_connection(self) -> None:
        """
        Verifica la conexión una sola vez.

        No hace nada si el estado es READY. Las llamadas que llegan mientras un
        intento está en curso esperan ese intento y comparten su resultado.
        Después de un fallo, una llamada posterior vuelve a intentar.

        Raises:
            ConnectionFailureException: si la verificación falla
        """
        if self._state is ConnectionState.READY:
            return

        with self._lock:
            if self._state is ConnectionState.READY:
                return
            attempt = self._in_flight
            owner = attempt is None
            if owner:
                attempt = self._in_flight = _ConnectionAttempt()
                self._state = ConnectionState.INITIALIZING

        if owner:
            self._run_attempt(attempt)
        else:
            attempt.done.wait()

        if attempt.error is not None:
            raise ConnectionFailureException(
                details={"entity": self.entity_name}
            ) from attempt.error

    def _run_attempt(self, attempt: _ConnectionAttempt) -> None:
        # se limpia solo si connect() termina; una interrupción deja el intento fallido
        attempt.error = ConnectionFailureException(
            "Database connection attempt was interrupted.",
            details={"entity": self.entity_name},
        )
        try:
            self.database.connect()
            attempt.error = None
        except Exception as e:
            attempt.error = e
            self.logger.error(
                f"Database connection error: {e}",
                extra={
                    "error_kind": ErrorKind.CONNECTION_FAILURE.value,
                    "context": {"entity": self.entity_name, "operation": "ensure_connection"},
                },
                exc_info=e,
            )
        finally:
            with self._lock:
                failed = attempt.error is not None
                self._state = ConnectionState.FAILED if failed else ConnectionState.READY
                self._in_flight = None
            attempt.done.set()

        if attempt.error is None:
            self.logger.info("Database connection initialized.")

    def handle_store_failure(self, error: Exception, operation: str) -> NoReturn:
        """
        Clasifica, registra y relanza un fallo como excepción tipada.

        Las AppException se relanzan tal cual; los errores nativos de SQLAlchemy
        quedan encadenados como __cause__.
        """
        kind = classify_store_error(
            error,
            self.logger,
            entity=self.entity_name,
            operation=operation,
        )
        if isinstance(error, AppException):
            raise error

        message = _FAILURE_MESSAGES.get(kind, "{entity} not found").format(
            entity=self.entity_name, operation=operation
        )
        raise exception_for_kind(
            kind,
            message,
            details={"entity": self.entity_name, "operation": operation},
            resource=self.entity_name,
        ) from error

    # ==================== CRUD ====================

    def create(self, entity: T) -> T:
        """
        Crea una nueva entidad.

        Args:
            entity: La entidad a crear

        Returns:
            La entidad creada, con id y timestamps generados por la base de datos

        Raises:
            ConflictException: si se viola una restricción de unicidad
        """
        self.ensure_connection()
        try:
            with self.database.session() as db:
                db.add(entity)
                db.commit()
                db.refresh(entity)
                return entity
        except Exception as e:
            self.handle_store_failure(e, "create")

    def update(self, entity: T) -> T:
        """
        Guarda la entidad completa y la vuelve a leer por su identidad.

        Raises:
            NotFoundException: si no existe una entidad con ese id
            ConflictException: si se viola una restricción de unicidad
        """
        self.ensure_connection()
        entity_id = getattr(entity, "id", None)
        if entity_id is None:
            raise ValidationException(
                f"{self.entity_name} update requires an identity", field="id"
            )

        try:
            with self.database.session() as db:
                if db.get(self.model_class, entity_id) is None:
                    raise NotFoundException(resource=self.entity_name, identifier=entity_id)
                db.merge(entity)
                db.commit()
                return db.get(self.model_class, entity_id, populate_existing=True)
        except Exception as e:
            self.handle_store_failure(e, "update")

    def delete(self, id: EntityId) -> None:
        """
        Elimina una entidad por su id. Eliminar un id inexistente no es un error.
        """
        self.ensure_connection()
        try:
            with self.database.session() as db:
                deleted = (
                    db.query(self.model_class)
                    .filter(self.model_class.id == id)
                    .delete(synchronize_session=False)
                )
                db.commit()
        except Exception as e:
            self.handle_store_failure(e, "delete")
        if not deleted:
            self.logger.debug(f"Delete of {self.entity_name} {id} matched no rows")

    def find_by_id(self, id: EntityId) -> T:
        """
        Obtiene una entidad por su ID.

        Raises:
            NotFoundException: If entity is not found
        """
        self.ensure_connection()
        try:
            with self.database.session() as db:
                entity = db.get(self.model_class, id)
        except Exception as e:
            self.handle_store_failure(e, "find_by_id")

        if entity is None:
            raise NotFoundException(resource=self.entity_name, identifier=id)
        return entity

    def find_all(self) -> List[T]:
        """Obtiene todas las entidades, ordenadas por id. Pensado para tablas pequeñas."""
        self.ensure_connection()
        try:
            with self.database.session() as db:
                return db.query(self.model_class).order_by(asc(self.model_class.id)).all()
        except Exception as e:
            self.handle_store_failure(e, "find_all")

    def find_one_by(self, **filters: Any) -> Optional[T]:
        """
        Busca la primera entidad que coincide con los filtros de igualdad.

        Returns:
            La entidad o None si no hay coincidencias
        """
        self.ensure_connection()
        criteria = self._criteria(filters)
        try:
            with self.database.session() as db:
                return (
                    db.query(self.model_class)
                    .filter(*criteria)
                    .order_by(asc(self.model_class.id))
                    .first()
                )
        except Exception as e:
            self.handle_store_failure(e, "find_one_by")

    def count(self, **filters: Any) -> int:
        """Cuenta las entidades que coinciden con los filtros."""
        self.ensure_connection()
        criteria = self._criteria(filters)
        try:
            with self.database.session() as db:
                return db.query(self.model_class).filter(*criteria).count()
        except Exception as e:
            self.handle_store_failure(e, "count")

    def exists(self, id: EntityId) -> bool:
        """Verifica si una entidad existe por su ID."""
        self.ensure_connection()
        try:
            with self.database.session() as db:
                return db.get(self.model_class, id) is not None
        except Exception as e:
            self.handle_store_failure(e, "exists")

    def execute_query(
        self,
        query: str,
        parameters: Optional[Dict[str, Any]] = None,
    ) -> List[Dict[str, Any]]:
        """
        Ejecuta SQL crudo con parámetros enlazados.

        Returns:
            Las filas como diccionarios (lista vacía si la sentencia no devuelve filas)
        """
        self.ensure_connection()
        try:
            with self.database.session() as db:
                result = db.execute(text(query), parameters or {})
                rows = [dict(row._mapping) for row in result] if result.returns_rows else []
                db.commit()
                return rows
        except Exception as e:
            self.handle_store_failure(e, "execute_query")

    # ==================== Pagination ====================

    def paginate(
        self,
        options: Optional[PaginationOptions] = None,
        fields: Optional[Sequence[str]] = None,
    ) -> PaginatedEntities[T]:
        """
        Pagina las entidades con filtros, orden y selección de campos.

        Sin campo de orden se ordena por id ascendente; con campo de orden el id
        se usa como desempate, así las páginas son estables entre llamadas.

        Args:
            options: Opciones de paginación (where, sort, order, limit, page)
            fields: Campos a cargar; por defecto la entidad completa

        Returns:
            PaginatedEntities con las entidades de la página y el total filtrado

        Raises:
            ValidationException: si un campo de where, sort o fields no existe
        """
        options = options or PaginationOptions()
        self.ensure_connection()

        criteria = self._criteria(options.where or {})
        ordering = self._ordering(options.sort, options.order)
        projection = [self._column(name) for name in fields or []]

        try:
            with self.database.session() as db:
                query = db.query(self.model_class).filter(*criteria)
                total = query.count()
                if total == 0:
                    return PaginatedEntities(entities=[], total=0)

                query = query.order_by(*ordering)
                if projection:
                    query = query.options(load_only(*projection))

                entities = (
                    query.offset(offset_of(options.limit, options.page))
                    .limit(options.limit)
                    .all()
                )
                return PaginatedEntities(entities=entities, total=total)
        except Exception as e:
            self.handle_store_failure(e, "paginate")

    def paginate_range(self, total: int, limit: int = 10, page: int = 1) -> PaginationResult:
        """Metadata de paginación para un total dado."""
        return range_of(total, limit, page)

    # ==================== Helpers ====================

    def _column(self, name: str):
        if name not in self._field_names:
            raise ValidationException(
                f"Unknown field '{name}' for {self.entity_name}", field=name
            )
        return getattr(self.model_class, name)

    def _criteria(self, filters: Dict[str, Any]) -> list:
        return [self._column(name) == value for name, value in filters.items()]

    def _ordering(self, sort: Optional[str], order: SortOrder) -> list:
        identity = asc(self.model_class.id)
        if not sort:
            return [identity]
        direction = desc if order is SortOrder.DESC else asc
        if sort == "id":
            return [direction(self.model_class.id)]
        return [direction(self._column(sort)), identity]
