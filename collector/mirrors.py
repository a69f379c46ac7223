"""
Mirror catalogue of distribution package indexes.

Immutable configuration data keyed by distribution name; loaded once at
import time and never mutated.
"""

from types import MappingProxyType
from typing import Mapping, Tuple, Union
from core.exceptions import ConfigurationError
from models.base import DistType

DISTRIBUTION_MIRRORS: Mapping[DistType, Tuple[str, ...]] = MappingProxyType({
    DistType.FEDORA: (
        "https://mirrors.aliyun.com/fedora/releases/41/Everything/source/tree/repodata/df7750a80c5a4e4ff04ff5a1a499d32b6379dd50680b29140638e6edb1d71d68-primary.xml.gz",
    ),
    DistType.DEBIAN: (
        "https://mirrors.hust.edu.cn/debian/dists/stable/main/binary-amd64/Packages.gz",
    ),
    DistType.CENTOS: (
        "https://mirrors.aliyun.com/centos/7/os/x86_64/repodata/2b479c0f3efa73f75b7fb76c82687744275fff78e4a138b5b3efba95f91e099e-primary.xml.gz",
    ),
    DistType.GENTOO: (
        "https://github.com/gentoo/gentoo.git",
    ),
    DistType.HOMEBREW: (
        "https://github.com/Homebrew/homebrew-core.git",
    ),
    DistType.UBUNTU: tuple(
        f"https://mirrors.hust.edu.cn/ubuntu/dists/jammy/{component}/binary-amd64/Packages.gz"
        for component in ("main", "universe", "multiverse", "restricted")
    ),
    DistType.ALPINE: (
        "https://mirrors.aliyun.com/alpine/v3.21/main/x86_64/APKINDEX.tar.gz",
    ),
    DistType.ARCHLINUX: tuple(
        f"https://mirrors.hust.edu.cn/archlinux/{repo}/os/x86_64/{repo}.files.tar.gz"
        for repo in (
            "community", "community-staging", "community-testing",
            "core", "core-staging", "core-testing",
            "extra", "extra-staging", "extra-testing",
            "gnome-unstable", "kde-unstable",
            "multilib", "multilib-staging", "multilib-testing",
            "staging", "testing",
        )
    ),
    DistType.AUR: (
        "https://aur.archlinux.org/packages-meta-ext-v1.json.gz",
    ),
    DistType.DEEPIN: (
        "https://mirrors.hust.edu.cn/deepin/beige/dists/beige/main/binary-amd64/Packages.gz",
    ),
    DistType.OPENEULER: (
        "https://mirrors.hust.edu.cn/openeuler/openEuler-25.03/source/repodata/d2c8439b5d4ef77caf0aba57453b255c955625b95b5231266c0f668223524800-primary.xml.zst",
    ),
    DistType.OPENKYLIN: (
        "https://mirrors.hust.edu.cn/openkylin/dists/huanghe/main/binary-amd64/Packages.gz",
    ),
    DistType.OPENANOLIS: (
        "https://mirrors.openanolis.cn/anolis/23/os/x86_64/os/repodata/b8deff7d46ad19c92ec958ea1113fccece011dcb718b29dbd238864e7e28760b-primary.xml.gz",
    ),
    DistType.OPENHARMONY: (
        "https://gitee.com/openharmony/manifest/raw/OpenHarmony-5.1.0-Release/ohos/ohos.xml",
    ),
    DistType.OPENCLOUDOS: (
        "https://mirrors.opencloudos.tech/opencloudos/8.6/BaseOS/x86_64/os/repodata/f2da23eddb3242a3f3e71dfba303726141e5c01662f6f86d0fedd6dffde830bd-primary.xml.gz",
        "https://mirrors.opencloudos.tech/opencloudos/9.4/BaseOS/x86_64/os/repodata/d7efd4aec2a6bf15c7e7240dc1e1972f5764cc8610613d8329fe7ce0319fffb0-primary.xml.gz",
    ),
})


def get_mirror_urls(distribution: Union[str, DistType]) -> Tuple[str, ...]:
    """Index URLs for ``distribution``; unknown names are a configuration error"""
    try:
        dist = DistType(distribution)
        return DISTRIBUTION_MIRRORS[dist]
    except (ValueError, KeyError):
        raise ConfigurationError(
            f"No mirrors configured for distribution {distribution}",
            context={"distribution": str(distribution), "known": sorted(d.value for d in DISTRIBUTION_MIRRORS)}
        )
