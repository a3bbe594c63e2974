"""Contains classes and functions that simulate a set-associative,
write-back processor cache in front of a main memory."""


import logging

import cache_stats
from transfers import TransferType


logger = logging.getLogger(__name__)


# The largest cache supported, in blocks, and the largest block, in words.
MAX_CACHE_SIZE = 256
MAX_BLOCK_SIZE = 256


class CacheConfigurationError(ValueError):
  """Raised when a cache cannot be built from the given parameters."""


class SlotState(object):
  """An enumeration representing the possible states for a cache block."""

  EMPTY, CLEAN, DIRTY = range(3)

  @classmethod
  def pretty_string(cls, state):
    """Return a human-readable version of an enum value."""

    if state == SlotState.EMPTY:
      return "EMPTY"
    elif state == SlotState.CLEAN:
      return "CLEAN"
    elif state == SlotState.DIRTY:
      return "DIRTY"
    elif state == None:
      return "None"
    else:
      raise ValueError("Unknown state %s!" % state)


class CacheBlock(object):
  """Represents a block (line) in the cache.

  An EMPTY block has never been loaded, and has neither a tag nor a recency.
  CLEAN and DIRTY blocks hold the memory block identified by their tag; the
  recency is the value of the cache's access counter at the last access."""

  def __init__(self, block_size):
    self.data = [0] * block_size
    self.state = SlotState.EMPTY
    self.tag = None
    self.recency = None

  @property
  def used(self):
    return self.state != SlotState.EMPTY

  @property
  def dirty(self):
    return self.state == SlotState.DIRTY

  def __repr__(self):
    """The string representation of a cache block."""

    return ("CacheBlock[state=%s, tag=%s, recency=%s, data=%s]" %
        (SlotState.pretty_string(self.state),
        self.tag,
        self.recency,
        self.data))


def validate_configuration(block_size, number_sets, blocks_per_set):
  """Checks that a cache can be built with the given dimensions.

  Raises a CacheConfigurationError for an unusable configuration. Sizes that
  are not powers of two still work, but only produce a warning."""

  if block_size <= 0 or number_sets <= 0 or blocks_per_set <= 0:
    raise CacheConfigurationError("input parameters must be positive numbers")

  if number_sets * blocks_per_set > MAX_CACHE_SIZE:
    raise CacheConfigurationError("cache must be no larger than %d blocks" %
        MAX_CACHE_SIZE)

  if block_size > MAX_BLOCK_SIZE:
    raise CacheConfigurationError("blocks must be no larger than %d words" %
        MAX_BLOCK_SIZE)

  if not _is_power_of_two(block_size):
    logger.warning("blockSize %d is not a power of 2", block_size)

  if not _is_power_of_two(number_sets):
    logger.warning("numSets %d is not a power of 2", number_sets)


class Cache(object):
  """Represents a set-associative cache with LRU replacement.

  A cache is defined by the size of each block (in words), the number of sets,
  and the number of blocks in each set. Set s owns the blocks
  [s * blocks_per_set, (s + 1) * blocks_per_set).

  The memory is only touched when a block is loaded or written back, and every
  transfer is reported to the transfer log."""

  def __init__(self, block_size, number_sets, blocks_per_set, memory,
      transfer_log, tracker=None):
    validate_configuration(block_size, number_sets, blocks_per_set)

    self.block_size = block_size
    self.number_sets = number_sets
    self.blocks_per_set = blocks_per_set

    self.memory = memory
    self.transfer_log = transfer_log

    if tracker is None:
      tracker = cache_stats.CacheStatisticsTracker()
    self.tracker = tracker

    logger.info("Simulating a cache with %d total lines; each line has %d "
        "words", number_sets * blocks_per_set, block_size)
    logger.info("Each set in the cache contains %d lines; there are %d sets",
        blocks_per_set, number_sets)

    self.blocks = [CacheBlock(block_size)
        for _ in range(number_sets * blocks_per_set)]

    # Strictly increasing; the last value handed out as a recency.
    self.recency_counter = 0

  @property
  def hits(self):
    return self.tracker.stats.hits

  @property
  def misses(self):
    return self.tracker.stats.misses

  @property
  def writebacks(self):
    """Dirty blocks written back when evicted on a miss."""

    return self.tracker.stats.write_backs

  def read(self, address):
    """Handles a read from a memory address, returning the word read."""

    return self.access(address, False)

  def write(self, address, data):
    """Handles a write of data to a memory address."""

    self.access(address, True, data)

  def access(self, address, write_flag=False, write_data=0):
    """Accesses a word through the cache.

    On a read the word is returned. On a write, write_data is stored and
    None is returned."""

    tag, set_index, offset = self.split_address(address)

    # The whole block must fit in memory, or a miss would fail half way.
    if address - offset + self.block_size > len(self.memory):
      raise ValueError("address %s is outside of memory [0-%s]!" % (address,
          len(self.memory) - 1))

    if logger.isEnabledFor(logging.DEBUG):
      logger.debug("%s to %s [tag=%s, set_index=%s, offset=%s]",
          "Write" if write_flag else "Read", address, tag, set_index, offset)

    hit_way, free_way, lru_way = self.scan_set(set_index, tag)

    if hit_way is not None:
      logger.debug("Hit in way %s.", hit_way)

      if write_flag:
        self.tracker.write_hit(address, tag, set_index)
      else:
        self.tracker.read_hit(address, tag, set_index)

      block = self.get_block(set_index, hit_way)
      block.recency = self._next_recency()
    else:
      if write_flag:
        self.tracker.write_miss(address, tag, set_index)
      else:
        self.tracker.read_miss(address, tag, set_index)

      # A set is filled completely before anything is evicted.
      victim_way = free_way if free_way is not None else lru_way
      logger.debug("Miss, replacing way %s.", victim_way)

      block = self.get_block(set_index, victim_way)
      self._replace(block, set_index, tag, address - offset)

    if write_flag:
      block.data[offset] = write_data
      block.state = SlotState.DIRTY
      self.transfer_log.record(address, 1, TransferType.PROCESSOR_TO_CACHE)
      return None

    self.transfer_log.record(address, 1, TransferType.CACHE_TO_PROCESSOR)
    return block.data[offset]

  def scan_set(self, set_index, tag):
    """Searches a set for a tag.

    Returns a (hit_way, free_way, lru_way) tuple of positions within the set.
    If the tag is present, hit_way is its position and the scan stops there.
    Otherwise hit_way is None, free_way is the first EMPTY block (or None) and
    lru_way is the used block with the smallest recency, the first one
    found winning ties (None only if no block is used)."""

    cache_set = self.get_set(set_index)

    free_way = None
    lru_way = None
    for (way, block) in enumerate(cache_set):
      if not block.used:
        if free_way is None:
          free_way = way
        continue

      if block.tag == tag:
        return way, free_way, lru_way

      if lru_way is None or block.recency < cache_set[lru_way].recency:
        lru_way = way

    return None, free_way, lru_way

  def split_address(self, address):
    """Splits an address into the tag, set index, and offset."""

    if address < 0:
      raise ValueError("address must be non-negative!")

    offset = address % self.block_size
    set_index = (address // self.block_size) % self.number_sets
    tag = address // (self.block_size * self.number_sets)

    return tag, set_index, offset

  def block_address(self, tag, set_index):
    """Returns the address of the first word of a memory block."""

    return (tag * self.number_sets + set_index) * self.block_size

  def get_set(self, set_index):
    """Returns the blocks of a set, in way order."""

    start = set_index * self.blocks_per_set
    return self.blocks[start:start + self.blocks_per_set]

  def get_block(self, set_index, way):
    """Returns a single block of a set."""

    if way < 0 or way >= self.blocks_per_set:
      raise IndexError("way %s out of range!" % way)

    return self.blocks[set_index * self.blocks_per_set + way]

  def dirty_blocks(self):
    """Returns the number of blocks holding data not yet in memory."""

    return len([block for block in self.blocks if block.dirty])

  def flush(self):
    """Writes every dirty block back to memory.

    The blocks stay in the cache, now CLEAN. Flushes are not write-backs:
    they are reported to the tracker separately. Returns the number of
    blocks flushed."""

    flushed = 0
    for set_index in range(self.number_sets):
      for block in self.get_set(set_index):
        if block.dirty:
          old_address = self._store_block(block, set_index)
          self.tracker.flush(old_address, block.tag, set_index)
          block.state = SlotState.CLEAN
          flushed += 1

    return flushed

  def dump(self):
    """Returns the contents of the cache as a human-readable string."""

    lines = ["", "cache:"]
    for set_index in range(self.number_sets):
      lines.append("\tset %i:" % set_index)
      for (way, block) in enumerate(self.get_set(set_index)):
        words = "".join(" %i" % word for word in block.data)
        lines.append("\t\t[ %i ]: {%s }" % (way, words))
    lines.append("end cache")

    return "\n".join(lines)

  def check_invariants(self):
    """Checks the cache for internal consistency.

    Returns a list of problems found; an empty list means the cache is
    consistent."""

    problems = []
    recencies = {}

    for set_index in range(self.number_sets):
      tags = set()
      for (way, block) in enumerate(self.get_set(set_index)):
        if not block.used:
          if block.tag is not None or block.recency is not None:
            problems.append("set %s way %s: EMPTY block has tag %s, recency "
                "%s" % (set_index, way, block.tag, block.recency))
          continue

        if block.tag in tags:
          problems.append("set %s: tag %s held by more than one block" %
              (set_index, block.tag))
        tags.add(block.tag)

        if block.recency in recencies:
          problems.append("recency %s shared by set %s way %s and set %s way "
              "%s" % ((block.recency, set_index, way) +
              recencies[block.recency]))
        recencies[block.recency] = (set_index, way)

        if block.recency > self.recency_counter:
          problems.append("set %s way %s: recency %s is ahead of the counter "
              "(%s)" % (set_index, way, block.recency, self.recency_counter))

    return problems

  def _replace(self, block, set_index, tag, base_address):
    """Evicts whatever a block holds, then loads the memory block at
    base_address into it."""

    if block.dirty:
      self._write_back(block, set_index)
    elif block.used:
      old_address = self.block_address(block.tag, set_index)
      self.tracker.discard(old_address, block.tag, set_index)
      self.transfer_log.record(old_address, self.block_size,
          TransferType.CACHE_TO_NOWHERE)

    for i in range(self.block_size):
      block.data[i] = self.memory.access(base_address + i, False, 0)
    self.transfer_log.record(base_address, self.block_size,
        TransferType.MEMORY_TO_CACHE)

    block.tag = tag
    block.state = SlotState.CLEAN
    block.recency = self._next_recency()

  def _write_back(self, block, set_index):
    """Writes a dirty block to memory, at the address given by its tag."""

    old_address = self._store_block(block, set_index)
    self.tracker.write_back(old_address, block.tag, set_index)

  def _store_block(self, block, set_index):
    """Copies a block to memory, at the address given by its tag.

    Returns that address."""

    old_address = self.block_address(block.tag, set_index)
    logger.debug("Storing [%s-%s].", old_address,
        old_address + self.block_size - 1)

    for i in range(self.block_size):
      self.memory.access(old_address + i, True, block.data[i])

    self.transfer_log.record(old_address, self.block_size,
        TransferType.CACHE_TO_MEMORY)

    return old_address

  def _next_recency(self):
    self.recency_counter += 1
    return self.recency_counter


def _is_power_of_two(num):
  """Determines if a given number is a power of 2 or not."""

  return ((num & (num - 1)) == 0) and num > 0
