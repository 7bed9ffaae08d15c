"""
Program Planner - Services
ポリシー選択・アシスタント・イベント更新・共同編集・通知
"""
