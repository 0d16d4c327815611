"""edkit - 编辑器及其模块的版本感知安装器"""

__version__ = "0.1.0"
