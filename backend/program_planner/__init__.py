"""
Program Planner - キャンパス企画の計画支援バックエンド
"""
__version__ = "0.1.0"
