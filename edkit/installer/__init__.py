"""安装包解包与落盘"""

from edkit.installer.pipeline import Installer
from edkit.installer.strategy import InstallerKind, InstallStrategy, select_strategy

__all__ = ["Installer", "InstallerKind", "InstallStrategy", "select_strategy"]
