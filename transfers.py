"""The transfer log module.

Every movement of data between the processor, the cache and main memory is
reported here, one line per transfer."""


import collections
import sys


class UnknownTransferError(ValueError):
  """Raised when a transfer of an unrecognized kind is logged."""


class TransferType(object):
  """An enumeration of the possible sources and destinations of a transfer."""

  (CACHE_TO_PROCESSOR, PROCESSOR_TO_CACHE, MEMORY_TO_CACHE, CACHE_TO_MEMORY,
      CACHE_TO_NOWHERE) = range(5)


# The trailing part of each log line, by transfer type.
_DIRECTIONS = {
  TransferType.CACHE_TO_PROCESSOR: "from the cache to the processor",
  TransferType.PROCESSOR_TO_CACHE: "from the processor to the cache",
  TransferType.MEMORY_TO_CACHE: "from the memory to the cache",
  TransferType.CACHE_TO_MEMORY: "from the cache to the memory",
  TransferType.CACHE_TO_NOWHERE: "from the cache to nowhere",
}


def format_transfer(address, size, kind):
  """Formats a single transfer line.

  address is the first word transferred and size is the number of words."""

  if kind not in _DIRECTIONS:
    raise UnknownTransferError("unrecognized transfer type %s" % (kind,))

  return "$$$ transferring word [%d-%d] %s" % (address, address + size - 1,
      _DIRECTIONS[kind])


class TransferLog(object):
  """Records the transfers made by a cache.

  Each transfer is written to the output stream as soon as it is recorded.
  If no stream is given, the current sys.stdout is used."""

  def __init__(self, out=None):
    self.out = out

    # Number of transfers and words moved, indexed by TransferType.
    self.transfer_counts = collections.defaultdict(int)
    self.word_counts = collections.defaultdict(int)

  def record(self, address, size, kind):
    """Record (and print) a transfer of size words starting at address."""

    line = format_transfer(address, size, kind)

    self.transfer_counts[kind] += 1
    self.word_counts[kind] += size

    out = self.out if self.out is not None else sys.stdout
    out.write(line + "\n")
