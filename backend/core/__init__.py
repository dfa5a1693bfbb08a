"""Core decision logic: indicators, strategies, risk gating and models.

This package contains pure business logic with no I/O dependencies
(no database, network or file access). It is shared between the live
service (app/) and the backtesting system (backtest/).
"""
