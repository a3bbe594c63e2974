"""Statistics gathering for the cache."""


class CacheStatistics(object):
  """Holds statistics for a cache."""

  def __init__(self):
    self.read_hits = 0
    self.read_misses = 0

    self.write_hits = 0
    self.write_misses = 0

    # Evictions of dirty blocks (written back) and clean blocks (thrown away).
    self.write_backs = 0
    self.discards = 0

    # Dirty blocks copied to memory by an explicit flush, not by a miss.
    self.flushes = 0

    # The set of memory blocks brought into the cache, as (tag, set_index).
    self.loaded_blocks = set()

  @property
  def accesses(self):
    return self.hits + self.misses

  @property
  def reads(self):
    return self.read_hits + self.read_misses

  @property
  def writes(self):
    return self.write_hits + self.write_misses

  @property
  def hits(self):
    return self.read_hits + self.write_hits

  @property
  def misses(self):
    return self.read_misses + self.write_misses


class CacheStatisticsTracker(object):
  """Tracks statistics for a single cache.

  The cache notifies the tracker of every hit, miss and eviction."""

  def __init__(self):
    self.stats = CacheStatistics()

  def read_hit(self, address, tag, set_index):
    """Notify the tracker of a read hit."""

    self.stats.read_hits += 1

  def write_hit(self, address, tag, set_index):
    """Notify the tracker of a write hit."""

    self.stats.write_hits += 1

  def read_miss(self, address, tag, set_index):
    """Notify the tracker of a read miss."""

    self.stats.read_misses += 1
    self.stats.loaded_blocks.add((tag, set_index))

  def write_miss(self, address, tag, set_index):
    """Notify the tracker of a write miss."""

    self.stats.write_misses += 1
    self.stats.loaded_blocks.add((tag, set_index))

  def write_back(self, base_address, tag, set_index):
    """Notify the tracker that a dirty block was written back."""

    self.stats.write_backs += 1

  def discard(self, base_address, tag, set_index):
    """Notify the tracker that a clean block was evicted."""

    self.stats.discards += 1

  def flush(self, base_address, tag, set_index):
    """Notify the tracker that a dirty block was flushed to memory."""

    self.stats.flushes += 1

  def get_cache_stats(self, cache):
    """Return a dictionary with statistics for the given cache.

    The dirty block count is read from the cache itself; nothing is
    modified."""

    stats = {}
    stats["accesses"] = self.stats.accesses
    stats["reads"] = self.stats.reads
    stats["writes"] = self.stats.writes

    stats["hits"] = self.stats.hits
    stats["read_hits"] = self.stats.read_hits
    stats["write_hits"] = self.stats.write_hits

    stats["misses"] = self.stats.misses
    stats["read_misses"] = self.stats.read_misses
    stats["write_misses"] = self.stats.write_misses

    stats["writebacks"] = self.stats.write_backs
    stats["discards"] = self.stats.discards
    stats["flushes"] = self.stats.flushes
    stats["distinct_blocks"] = len(self.stats.loaded_blocks)

    stats["dirty_blocks"] = cache.dirty_blocks()

    return stats
