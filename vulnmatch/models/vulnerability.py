"""vuln table."""

from sqlalchemy import BigInteger, Index, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from vulnmatch.core.database import Base


def _text_column() -> Mapped[str]:
    return mapped_column(Text, nullable=False, server_default=text("''"))


class Vulnerability(Base):
    __tablename__ = "vuln"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    updater: Mapped[str] = _text_column()
    name: Mapped[str] = _text_column()
    description: Mapped[str] = _text_column()
    links: Mapped[str] = _text_column()
    severity: Mapped[str] = _text_column()

    package_name: Mapped[str] = _text_column()
    package_version: Mapped[str] = _text_column()
    package_kind: Mapped[str] = _text_column()

    dist_id: Mapped[str] = _text_column()
    dist_name: Mapped[str] = _text_column()
    dist_version: Mapped[str] = _text_column()
    dist_version_code_name: Mapped[str] = _text_column()
    dist_version_id: Mapped[str] = _text_column()
    dist_arch: Mapped[str] = _text_column()
    dist_cpe: Mapped[str] = _text_column()
    dist_pretty_name: Mapped[str] = _text_column()

    repo_name: Mapped[str] = _text_column()
    repo_key: Mapped[str] = _text_column()
    repo_uri: Mapped[str] = _text_column()

    fixed_in_version: Mapped[str] = _text_column()

    __table_args__ = (
        Index("idx_vuln_package_name", "package_name"),
        Index("idx_vuln_dist", "dist_id", "dist_version_id"),
    )
