"""スケジューラーモジュール

アラートバッチの定期実行を管理する。
"""
