from sqlalchemy import JSON, BigInteger, Integer
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import declarative_base
import enum

Base = declarative_base()

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests)
JSONType = JSON().with_variant(JSONB(), "postgresql")

# SQLite only autoincrements INTEGER primary keys
BigIntPK = BigInteger().with_variant(Integer(), "sqlite")


# ============================================================================
# ENUMS
# ============================================================================

class RunStatus(str, enum.Enum):
    """Enumeration run status"""
    PENDING = "pending"
    RUNNING = "running"
    SUCCESS = "success"
    FAILED = "failed"
    PARTIAL = "partial"


class DistType(str, enum.Enum):
    """Distribution or registry kind a package entry comes from"""
    DEBIAN = "debian"
    UBUNTU = "ubuntu"
    DEEPIN = "deepin"
    OPENKYLIN = "openkylin"
    FEDORA = "fedora"
    CENTOS = "centos"
    OPENEULER = "openeuler"
    OPENANOLIS = "openanolis"
    OPENCLOUDOS = "opencloudos"
    ARCHLINUX = "archlinux"
    AUR = "aur"
    ALPINE = "alpine"
    GENTOO = "gentoo"
    HOMEBREW = "homebrew"
    OPENHARMONY = "openharmony"
    PYPI = "pypi"
    NPM = "npm"
