"""
auth/store.py -- SQLAlchemy Core persistence layer for principals.

Pattern: Repository + Data Mapper.
PrincipalStore is the repository; _row_to_cafe / _row_to_admin are the mappers.
Route and service code never touches SQL directly.

The authorization core only needs two lookups from here -- get_cafe_by_login()
and get_admin_by_phone() -- each returning identity, role and stored hash.
The remaining methods back the café profile and admin provisioning routes.

Security:
  All queries use bound parameters. No f-strings in SQL.

Phone numbers live in their own table (one café, many numbers). update_cafe()
replaces them wholesale inside one transaction, so a failed insert never
leaves a café with its old numbers deleted and no new ones.

Layer rule: no imports from api/.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Column, ForeignKey, Integer, MetaData, String, Table, Text, create_engine, event, func, select
from sqlalchemy.engine import Connection, Engine

from auth.models import ROLE_ADMIN, ROLE_CAFE, Admin, Cafe

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_cafes = Table(
    "cafes",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("login", String(255), nullable=False, unique=True),
    Column("hashed_password", Text, nullable=False),
    Column("name", String(255), nullable=False),
    Column("role", String(30), nullable=False, server_default=ROLE_CAFE),
    Column("logo", Text, nullable=False, server_default=""),
    Column("code", String(64), nullable=False, server_default=""),
    Column("expiry_date", String(32)),
    Column("created_at", String(32), nullable=False),
)

_cafe_phones = Table(
    "cafe_phones",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("cafe_id", Integer, ForeignKey("cafes.id", ondelete="CASCADE"), nullable=False, index=True),
    Column("phone_number", String(32), nullable=False),
)

_admins = Table(
    "admins",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("phone_number", String(32), nullable=False, unique=True),
    Column("hashed_password", Text, nullable=False),
    Column("first_name", String(100), nullable=False, server_default=""),
    Column("last_name", String(100), nullable=False, server_default=""),
    Column("email", String(255), nullable=False, server_default=""),
    Column("role", String(30), nullable=False, server_default=ROLE_ADMIN),
    Column("created_at", String(32), nullable=False),
)


# ---------------------------------------------------------------------------
# SQLite pragmas
# ---------------------------------------------------------------------------


def _set_sqlite_pragmas(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode and foreign keys on every new SQLite connection.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")
    dbapi_conn.execute("PRAGMA foreign_keys=ON")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _clean_phones(phone_numbers: list[str]) -> list[str]:
    return [p.strip() for p in phone_numbers if p and p.strip()]


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class PrincipalStore:
    """Repository for Cafe and Admin principals.

    Usage:
        store = PrincipalStore("sqlite:///menuservice.db")
        cafe_id = store.create_cafe(Cafe(login="blue", name="Blue Cup", hashed_password=hash_password("s3cret")))
        cafe = store.get_cafe_by_login("blue")
        store.close()
    """

    def __init__(self, db_url: str) -> None:
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_sqlite_pragmas)
        _metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Cafe queries
    # ------------------------------------------------------------------

    def create_cafe(self, cafe: Cafe) -> int:
        """Insert a new café (and its phone numbers) and return its ID.

        Raises sqlalchemy.exc.IntegrityError if the login already exists.
        """
        with self.engine.begin() as conn:
            result = conn.execute(
                _cafes.insert().values(
                    login=cafe.login,
                    hashed_password=cafe.hashed_password,
                    name=cafe.name,
                    role=cafe.role,
                    logo=cafe.logo,
                    code=cafe.code,
                    expiry_date=cafe.expiry_date,
                    created_at=_now_iso(),
                )
            )
            cafe_id = result.inserted_primary_key[0]
            self._insert_phones(conn, cafe_id, cafe.phone_numbers)
        return cafe_id

    def get_cafe_by_id(self, cafe_id: int) -> Cafe | None:
        """Look up a café by primary key. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_cafes.select().where(_cafes.c.id == cafe_id)).fetchone()
            if row is None:
                return None
            return _row_to_cafe(row, self._phones_for(conn, row.id))

    def get_cafe_by_login(self, login: str) -> Cafe | None:
        """Look up a café by exact login (case-sensitive). Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_cafes.select().where(_cafes.c.login == login)).fetchone()
            if row is None:
                return None
            return _row_to_cafe(row, self._phones_for(conn, row.id))

    def list_cafes(self) -> list[Cafe]:
        """Return all cafés ordered by name. Admin-only operation."""
        with self.engine.connect() as conn:
            rows = conn.execute(_cafes.select().order_by(_cafes.c.name, _cafes.c.id)).fetchall()
            return [_row_to_cafe(r, self._phones_for(conn, r.id)) for r in rows]

    def update_cafe(
        self,
        cafe_id: int,
        name: str | None = None,
        hashed_password: str | None = None,
        phone_numbers: list[str] | None = None,
    ) -> Cafe | None:
        """Update a café's profile in one transaction and return the fresh record.

        None leaves a field unchanged. An empty name is ignored. phone_numbers,
        when given and non-empty, replaces the existing set; blank entries are
        skipped, so a list of only blanks clears the numbers. Returns None if
        cafe_id does not exist.
        """
        values: dict = {}
        if name:
            values["name"] = name
        if hashed_password:
            values["hashed_password"] = hashed_password

        with self.engine.begin() as conn:
            exists = conn.execute(select(_cafes.c.id).where(_cafes.c.id == cafe_id)).fetchone()
            if exists is None:
                return None
            if values:
                conn.execute(_cafes.update().where(_cafes.c.id == cafe_id).values(**values))
            if phone_numbers:
                conn.execute(_cafe_phones.delete().where(_cafe_phones.c.cafe_id == cafe_id))
                self._insert_phones(conn, cafe_id, phone_numbers)
        return self.get_cafe_by_id(cafe_id)

    def _insert_phones(self, conn: Connection, cafe_id: int, phone_numbers: list[str]) -> None:
        phones = _clean_phones(phone_numbers)
        if phones:
            conn.execute(_cafe_phones.insert(), [{"cafe_id": cafe_id, "phone_number": p} for p in phones])

    def _phones_for(self, conn: Connection, cafe_id: int) -> list[str]:
        rows = conn.execute(
            select(_cafe_phones.c.phone_number).where(_cafe_phones.c.cafe_id == cafe_id).order_by(_cafe_phones.c.id)
        ).fetchall()
        return [r.phone_number for r in rows]

    # ------------------------------------------------------------------
    # Admin queries
    # ------------------------------------------------------------------

    def has_admins(self) -> bool:
        """Return True if at least one administrator exists. Used by the CLI bootstrap."""
        with self.engine.connect() as conn:
            result = conn.execute(select(func.count()).select_from(_admins)).scalar()
        return (result or 0) > 0

    def create_admin(self, admin: Admin) -> int:
        """Insert a new administrator and return its ID.

        Raises sqlalchemy.exc.IntegrityError if the phone number already exists.
        """
        with self.engine.begin() as conn:
            result = conn.execute(
                _admins.insert().values(
                    phone_number=admin.phone_number,
                    hashed_password=admin.hashed_password,
                    first_name=admin.first_name,
                    last_name=admin.last_name,
                    email=admin.email,
                    role=admin.role,
                    created_at=_now_iso(),
                )
            )
            return result.inserted_primary_key[0]

    def get_admin_by_phone(self, phone_number: str) -> Admin | None:
        with self.engine.connect() as conn:
            row = conn.execute(_admins.select().where(_admins.c.phone_number == phone_number)).fetchone()
        return _row_to_admin(row) if row is not None else None

    def get_admin_by_id(self, admin_id: int) -> Admin | None:
        with self.engine.connect() as conn:
            row = conn.execute(_admins.select().where(_admins.c.id == admin_id)).fetchone()
        return _row_to_admin(row) if row is not None else None

    def ping(self) -> bool:
        """Return True if the database answers a trivial query."""
        with self.engine.connect() as conn:
            return conn.execute(select(1)).scalar() == 1

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_cafe(row, phone_numbers: list[str]) -> Cafe:
    return Cafe(
        id=row.id,
        login=row.login,
        hashed_password=row.hashed_password,
        name=row.name,
        role=row.role,
        logo=row.logo or "",
        code=row.code or "",
        expiry_date=row.expiry_date,
        phone_numbers=phone_numbers,
        created_at=row.created_at,
    )


def _row_to_admin(row) -> Admin:
    return Admin(
        id=row.id,
        phone_number=row.phone_number,
        hashed_password=row.hashed_password,
        first_name=row.first_name,
        last_name=row.last_name,
        email=row.email,
        role=row.role,
        created_at=row.created_at,
    )
