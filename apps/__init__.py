"""
Apps package - NiceGUI applications.

- live_chart: live Binance price chart with buy/sell markers
"""
