"""
SQLAlchemy ORM models for the score catalog.

Only the columns the archive transport needs are modelled; the rest of
the catalog schema (skill levels, users, works) lives in the database.
"""

from sqlalchemy import DateTime, String, Text, UniqueConstraint, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


# Composite uniqueness guardrail against uploading the same piece twice
# under different file names.
COMPOSITE_UNIQUE_CONSTRAINT = "ui_title_composer_level"
FILE_NAME_UNIQUE_CONSTRAINT = "song_file_name_key"


class Song(Base):
    """One catalogued score and its MXL archive.

    ``song_mxl`` holds the archive in the canonical ``\\x``-prefixed hex
    form.  Drivers and RPC layers may hand it back as hex text, base64,
    bytes or a byte array, so readers go through
    :func:`core.mxl.codec.decode_stored`.
    """

    __tablename__ = "song"

    song_id: Mapped[int] = mapped_column(primary_key=True)
    song_title: Mapped[str] = mapped_column(String(256))
    composer_first_name: Mapped[str] = mapped_column(String(128))
    composer_last_name: Mapped[str] = mapped_column(String(128), index=True)
    skill_level_name: Mapped[str] = mapped_column(String(64))
    file_name: Mapped[str] = mapped_column(String(512))
    song_mxl: Mapped[str | None] = mapped_column(Text, nullable=True)
    inserted_datetime: Mapped[DateTime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_datetime: Mapped[DateTime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    __table_args__ = (
        UniqueConstraint(
            "song_title",
            "composer_first_name",
            "composer_last_name",
            "skill_level_name",
            name=COMPOSITE_UNIQUE_CONSTRAINT,
        ),
        UniqueConstraint("file_name", name=FILE_NAME_UNIQUE_CONSTRAINT),
    )
