class ReplicaWriteRejected(Exception):
    """A write reached a read-only replica connection (SQLSTATE 25006)"""
