"""
Time Series Example - redis-ts-client

Demonstrates the RedisTimeSeries commands on a local redis-stack server.
"""

from redis_ts_client import (
    Aggregation,
    AggregationType,
    DuplicatePolicy,
    FilterOptions,
    TsClient,
    TsOptions,
)


def main():
    client = TsClient.redis(host="127.0.0.1", port=6379)

    with client:
        print("=== Time Series Example ===\n")

        # Create time series with labels
        print("1. Creating time series...")
        base = TsOptions(retention_time=86400000).label("type", "temperature")  # 24 hours retention
        client.ts_create(
            "sensor:temperature:room1",
            base.label("location", "room1").with_duplicate_policy(DuplicatePolicy.LAST),
        )
        client.ts_create("sensor:temperature:room2", base.label("location", "room2"))

        # Add samples
        print("2. Adding samples...")
        samples = [
            (1000, 22.5),
            (2000, 23.1),
            (3000, 22.8),
            (4000, 24.0),
            (5000, 23.5),
        ]
        client.ts_madd([("sensor:temperature:room1", ts, value) for ts, value in samples])
        client.ts_madd([("sensor:temperature:room2", ts, value + 1.0) for ts, value in samples])

        # Get latest value
        print("\n3. Getting latest value...")
        latest = client.ts_get("sensor:temperature:room1")
        print(f"   Latest: timestamp={latest.timestamp}, value={latest.value}")

        # Query range
        print("\n4. Querying range...")
        print(f"   All samples: {client.ts_range('sensor:temperature:room1')}")

        # Query with aggregation
        print("\n5. Querying with aggregation...")
        avg_data = client.ts_range(
            "sensor:temperature:room1",
            aggregation=Aggregation(AggregationType.AVG, 2000),  # 2 second buckets
        )
        print(f"   2s average buckets: {avg_data}")

        # Multi-range query across series
        print("\n6. Multi-range query (TS.MRANGE)...")
        temperature = FilterOptions().equals("type", "temperature")
        for key, entry in client.ts_mrange(temperature, with_labels=True).items():
            print(f"   {key} {entry.labels}: {entry.samples}")

        # Get info
        print("\n7. Getting time series info...")
        info = client.ts_info("sensor:temperature:room1")
        print(f"   Samples: {info.total_samples}, retention: {info.retention_time}ms")

        # Create compaction rule
        print("\n8. Creating compaction rule...")
        client.ts_create(
            "sensor:temperature:room1:hourly",
            TsOptions(retention_time=604800000).label("location", "room1").label("aggregation", "hourly"),
        )
        client.ts_createrule(
            "sensor:temperature:room1",
            "sensor:temperature:room1:hourly",
            Aggregation(AggregationType.AVG, 3600000),  # 1 hour buckets
        )
        print("   Compaction rule created: AVG per hour")

        # Delete samples in range
        print("\n9. Deleting samples in range...")
        deleted = client.ts_del("sensor:temperature:room1", 1000, 2000)
        print(f"   Deleted {deleted} samples")

        # Cleanup - delete compaction rule
        print("\n10. Cleaning up...")
        client.ts_deleterule(
            "sensor:temperature:room1",
            "sensor:temperature:room1:hourly",
        )
        print("   Compaction rule deleted")

        print("\n=== Example Complete ===")


if __name__ == "__main__":
    main()
