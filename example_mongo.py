from fx_baht import FxBaht

print(FxBaht.__version__)  # 0.1.0

# MongoDb ledger
fx = FxBaht(db_config="mongodb://127.0.0.1:27017/fx_baht")

success, error = fx.connection()  # => to check the connectivity
if not success:
    print(error)
    exit(1)

# Copy the flat-file ledger into MongoDB
local = FxBaht()
print(local.migrate("mongodb://127.0.0.1:27017/fx_baht"))
# => PersistenceResult(inserted=30, updated=0, trimmed=0)

snapshot = fx.trigger_acquisition_cycle(wait=False)
print(snapshot.calendar_day, snapshot.degraded_sources)

print(fx.compare(100000))
