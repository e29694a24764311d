"""CLI サブパッケージ初期化モジュール."""
