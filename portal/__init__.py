"""
Портал поддержки: тикеты, чат, база знаний, уведомления и аналитика.
"""
