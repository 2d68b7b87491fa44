"""Cache Pool Implementations.

Provides concrete storage backends for the AbstractCachePool, currently a
pool that keeps one serialized file per key inside a FileSystem folder.
Bounded Context: Cache Management
"""
