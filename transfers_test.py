"""Tests for the transfers module."""

import io
import unittest

from transfers import (TransferLog, TransferType, UnknownTransferError,
    format_transfer)


class TransfersTest(unittest.TestCase):
  """Tests for the transfers module."""

  def test_format_transfer(self):
    """Tests the exact text of each kind of transfer."""

    self.assertEqual(format_transfer(5, 1, TransferType.CACHE_TO_PROCESSOR),
        "$$$ transferring word [5-5] from the cache to the processor")
    self.assertEqual(format_transfer(5, 1, TransferType.PROCESSOR_TO_CACHE),
        "$$$ transferring word [5-5] from the processor to the cache")
    self.assertEqual(format_transfer(4, 4, TransferType.MEMORY_TO_CACHE),
        "$$$ transferring word [4-7] from the memory to the cache")
    self.assertEqual(format_transfer(16, 8, TransferType.CACHE_TO_MEMORY),
        "$$$ transferring word [16-23] from the cache to the memory")
    self.assertEqual(format_transfer(0, 2, TransferType.CACHE_TO_NOWHERE),
        "$$$ transferring word [0-1] from the cache to nowhere")

  def test_unknown_transfer(self):
    with self.assertRaises(UnknownTransferError):
      format_transfer(0, 1, 5)

    with self.assertRaises(ValueError):
      format_transfer(0, 1, None)

  def test_transfer_log(self):
    """Tests that the log writes each transfer and counts them."""

    out = io.StringIO()
    log = TransferLog(out)

    log.record(0, 4, TransferType.MEMORY_TO_CACHE)
    log.record(2, 1, TransferType.CACHE_TO_PROCESSOR)
    log.record(8, 4, TransferType.MEMORY_TO_CACHE)

    self.assertEqual(out.getvalue(),
        "$$$ transferring word [0-3] from the memory to the cache\n"
        "$$$ transferring word [2-2] from the cache to the processor\n"
        "$$$ transferring word [8-11] from the memory to the cache\n")

    self.assertEqual(log.transfer_counts[TransferType.MEMORY_TO_CACHE], 2)
    self.assertEqual(log.word_counts[TransferType.MEMORY_TO_CACHE], 8)
    self.assertEqual(log.transfer_counts[TransferType.CACHE_TO_PROCESSOR], 1)
    self.assertEqual(log.transfer_counts[TransferType.CACHE_TO_MEMORY], 0)

  def test_transfer_log_rejects_unknown(self):
    out = io.StringIO()
    log = TransferLog(out)

    with self.assertRaises(UnknownTransferError):
      log.record(0, 1, 42)

    # Nothing is written or counted.
    self.assertEqual(out.getvalue(), "")
    self.assertEqual(sum(log.transfer_counts.values()), 0)


if __name__ == "__main__":
  unittest.main()
