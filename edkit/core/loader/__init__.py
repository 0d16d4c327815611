"""安装包下载与缓存"""
