"""Rate acquisition: source adapters and the aggregator that joins them."""
