REDIS_SNAPSHOT_KEY = "chess:rooms:snapshot" # whole-store JSON document

# **Snapshot document**
# - one string value holding the same JSON the file backend writes
# - `{roomId: {password, fen, players: [{playerId, address}]}}`
# - rewritten in full after every room mutation, no TTL
