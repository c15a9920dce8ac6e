"""ストア契約のインターフェース定義。

アプリケーションコード・サービス層・適合性テストは、このパッケージの
抽象クラスにのみ依存する。kvstore/store/ の実装に直接依存してはならない。
"""
