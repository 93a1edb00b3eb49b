"""SQLAlchemy-backed implementation of OrderStore."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path

from sqlalchemy import (
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
    create_engine,
    select,
)
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import (
    DeclarativeBase,
    Mapped,
    Session,
    mapped_column,
    relationship,
    selectinload,
    sessionmaker,
)
from sqlalchemy.pool import StaticPool

from orderhub.domain.exceptions import (
    DuplicateOrderError,
    PersistenceError,
    ValidationError,
)
from orderhub.domain.model.order import Order, OrderItem, OrderStatus
from orderhub.domain.model.value_objects import Money, Quantity
from orderhub.domain.repository.order_store import OrderStore, OrderUnitOfWork


class Base(DeclarativeBase):
    pass


class OrderRow(Base):
    __tablename__ = "orders"
    __table_args__ = (
        UniqueConstraint("user_id", "idempotency_key", name="uq_orders_user_idempotency_key"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(64), index=True)
    status: Mapped[str] = mapped_column(String(16), default=OrderStatus.PENDING.value)
    total: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0.00"))
    idempotency_key: Mapped[str | None] = mapped_column(String(128), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))

    items: Mapped[list[OrderItemRow]] = relationship(
        back_populates="order",
        order_by="OrderItemRow.position",
        cascade="all, delete-orphan",
    )


class OrderItemRow(Base):
    __tablename__ = "order_items"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    order_id: Mapped[str] = mapped_column(ForeignKey("orders.id"), index=True)
    position: Mapped[int] = mapped_column(Integer)
    product_id: Mapped[str] = mapped_column(String(64))
    quantity: Mapped[int] = mapped_column(Integer)
    price: Mapped[Decimal] = mapped_column(Numeric(12, 2))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))

    order: Mapped[OrderRow] = relationship(back_populates="items")


class _SqlAlchemyUnitOfWork(OrderUnitOfWork):

    def __init__(self, session: Session) -> None:
        self._session = session
        self._positions: dict[str, int] = {}

    def insert_order(self, order: Order) -> None:
        self._session.add(_to_order_row(order))
        try:
            self._session.flush()
        except IntegrityError as exc:
            # The primary key is a fresh UUID, so the only constraint an
            # insert can hit is (user_id, idempotency_key).
            if order.idempotency_key is None:
                raise
            raise DuplicateOrderError(order.user_id, order.idempotency_key) from exc
        self._positions[order.id] = 0

    def insert_order_item(self, item: OrderItem) -> None:
        if item.order_id not in self._positions:
            raise ValidationError(
                f"Order '{item.order_id}' was not inserted in this transaction"
            )
        position = self._positions[item.order_id]
        self._positions[item.order_id] = position + 1
        self._session.add(_to_item_row(item, position))
        self._session.flush()

    def update_order_total(self, order_id: str, total: Money) -> None:
        row = self._session.get(OrderRow, order_id)
        if row is None:
            raise ValidationError(f"Order '{order_id}' was not inserted in this transaction")
        row.total = total.rounded()
        row.updated_at = datetime.now(timezone.utc)
        self._session.flush()


class SqlAlchemyOrderStore(OrderStore):

    def __init__(self, database_url: str, echo: bool = False) -> None:
        self._engine = _create_engine(database_url, echo)
        self._session_factory = sessionmaker(self._engine, expire_on_commit=False)
        self._ensure_schema()

    # --- OrderStore interface -------------------------------------------------

    @contextmanager
    def transaction(self) -> Iterator[OrderUnitOfWork]:
        session = self._session_factory()
        try:
            yield _SqlAlchemyUnitOfWork(session)
            session.commit()
        except SQLAlchemyError as exc:
            session.rollback()
            raise PersistenceError(f"Order transaction failed: {exc}") from exc
        except BaseException:
            session.rollback()
            raise
        finally:
            session.close()

    def load_order_with_items(self, order_id: str) -> Order | None:
        with self._read_session() as session:
            row = session.scalars(
                select(OrderRow)
                .options(selectinload(OrderRow.items))
                .where(OrderRow.id == order_id)
            ).first()
            return _to_domain(row) if row is not None else None

    def load_orders_by_user(self, user_id: str) -> list[Order]:
        with self._read_session() as session:
            rows = session.scalars(
                select(OrderRow)
                .options(selectinload(OrderRow.items))
                .where(OrderRow.user_id == user_id)
                .order_by(OrderRow.created_at.desc(), OrderRow.id)
            ).all()
            return [_to_domain(row) for row in rows]

    def find_by_idempotency_key(self, user_id: str, key: str) -> Order | None:
        with self._read_session() as session:
            row = session.scalars(
                select(OrderRow)
                .options(selectinload(OrderRow.items))
                .where(OrderRow.user_id == user_id, OrderRow.idempotency_key == key)
            ).first()
            return _to_domain(row) if row is not None else None

    def dispose(self) -> None:
        self._engine.dispose()

    # --- Session helpers ------------------------------------------------------

    @contextmanager
    def _read_session(self) -> Iterator[Session]:
        try:
            with self._session_factory() as session:
                yield session
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Order read failed: {exc}") from exc

    def _ensure_schema(self) -> None:
        database = self._engine.url.database
        if self._engine.url.get_backend_name() == "sqlite" and database not in (None, "", ":memory:"):
            Path(database).parent.mkdir(parents=True, exist_ok=True)
        try:
            Base.metadata.create_all(self._engine)
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Could not prepare order tables: {exc}") from exc


_SQLITE_MEMORY_URLS = ("sqlite://", "sqlite:///:memory:", "sqlite+pysqlite:///:memory:")


def _create_engine(database_url: str, echo: bool) -> Engine:
    if database_url in _SQLITE_MEMORY_URLS:
        # One shared connection, otherwise every session sees an empty database.
        return create_engine(
            database_url,
            echo=echo,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    if database_url.startswith("sqlite"):
        return create_engine(
            database_url, echo=echo, connect_args={"check_same_thread": False}
        )
    return create_engine(database_url, echo=echo, pool_pre_ping=True)


# --- Serialization ------------------------------------------------------------


def _to_order_row(order: Order) -> OrderRow:
    return OrderRow(
        id=order.id,
        user_id=order.user_id,
        status=order.status.value,
        total=order.total.rounded(),
        idempotency_key=order.idempotency_key,
        created_at=order.created_at,
        updated_at=order.updated_at,
    )


def _to_item_row(item: OrderItem, position: int) -> OrderItemRow:
    return OrderItemRow(
        id=item.id,
        order_id=item.order_id,
        position=position,
        product_id=item.product_id,
        quantity=item.quantity.value,
        price=item.price.rounded(),
        created_at=item.created_at,
    )


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _to_domain(row: OrderRow) -> Order:
    items = [
        OrderItem(
            id=i.id,
            order_id=i.order_id,
            product_id=i.product_id,
            quantity=Quantity(i.quantity),
            price=Money(Decimal(i.price)),
            created_at=_as_utc(i.created_at),
        )
        for i in row.items
    ]
    return Order(
        id=row.id,
        user_id=row.user_id,
        status=OrderStatus(row.status),
        total=Money(Decimal(row.total)),
        items=items,
        idempotency_key=row.idempotency_key,
        created_at=_as_utc(row.created_at),
        updated_at=_as_utc(row.updated_at),
    )
