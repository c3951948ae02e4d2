from fx_baht import FxBaht

print(FxBaht.__version__)  # 0.1.0

# Default Usage: ledger kept in data/ledger.json
fx = FxBaht()

# Acquire today's rates (bank cash-sell USD + kiosk TWD/USD buy rates)
snapshot = fx.trigger_acquisition_cycle()
print(snapshot)
# => RateSnapshot(bank_sell_usd=31.84, kiosk_twd_rate=0.995, kiosk_usd_rate=31.36, ...)

# Latest ledger entry
print(fx.latest())

# Most recent week, newest first
for entry in fx.history(limit=7, order="desc"):
    print(entry.calendar_day, entry.bank_sell_usd, entry.kiosk_twd_rate, entry.kiosk_usd_rate)

# Which path yields more baht for 50,000 TWD?
result = fx.compare(50000)
print(result.recommended_path, result.path_direct_total, result.path_cross_total)
# => ConversionPath.DIRECT 49750 49297

# Import the legacy history.json written by the previous tracker
result, skipped = fx.import_legacy_history("data/history.json")
print(result, skipped)
