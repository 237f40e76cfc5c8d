"""
Domain Layer

包含應用程序的核心領域模型和業務邏輯，按功能領域分為多個子模塊：

- common: 共用的值對象、錯誤類型與 Result 包裝
- coordinates: WGS84 / GCJ-02 / BD-09 / UTM / Web 墨卡托座標轉換與邊界框工具
- geojson: geojson.io 預覽連結、Gist 上傳與 GitHub 裝置授權
"""
