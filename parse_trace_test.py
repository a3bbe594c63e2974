"""Tests for the trace driver."""

import contextlib
import io
import os
import shutil
import sys
import tempfile
import unittest

from caching import SlotState
from parse_trace import SimulationEnvironment, main


_TRACE_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)),
    "test_traces")


def _trace(name):
  return os.path.join(_TRACE_DIR, name)


"""A context manager that allows us to capture print statements, i.e.

>> with capture_output() as out:
>>   print("Hello, World!")
>> out
['Hello, World!\n', '']
"""
@contextlib.contextmanager
def capture_output():
  old_out, old_err = sys.stdout, sys.stderr
  try:
    out = [io.StringIO(), io.StringIO()]
    sys.stdout, sys.stderr = out
    yield out
  finally:
    sys.stdout, sys.stderr = old_out, old_err
    out[0] = out[0].getvalue()
    out[1] = out[1].getvalue()


class SimulationTest(unittest.TestCase):
  """Validation tests for the simulator, based on trace files.

  Tests are generally defined in the trace files themselves; if you do not
  understand the purpose of a test it is best to refer to the trace file it
  simulates."""

  def setUp(self):
    self.out = io.StringIO()
    self.temp_dir = tempfile.mkdtemp()

  def tearDown(self):
    shutil.rmtree(self.temp_dir)

  def _write_trace(self, contents):
    filename = os.path.join(self.temp_dir, "trace.out")
    with open(filename, "w") as trace_file:
      trace_file.write(contents)
    return filename

  def test_scenario(self):
    simulation = SimulationEnvironment(4, 2, 1,
        memory_image=_trace("scenario_memory.mc"),
        # Always turn on debug mode, so that the invariant checks in
        # SimulationEnvironment.simulate() execute.
        debug_mode=True,
        out=self.out)

    values = simulation.simulate(_trace("scenario_trace.out"))
    self.assertEqual(values, [1000, 1004, 1001, 1004])

    simulation.report_stats()
    lines = self.out.getvalue().splitlines()

    self.assertEqual(lines[:14], [
        "$$$ transferring word [0-3] from the memory to the cache",
        "$$$ transferring word [0-0] from the cache to the processor",
        "$$$ transferring word [4-7] from the memory to the cache",
        "$$$ transferring word [4-4] from the cache to the processor",
        "$$$ transferring word [1-1] from the cache to the processor",
        "$$$ transferring word [4-7] from the cache to nowhere",
        "$$$ transferring word [20-23] from the memory to the cache",
        "$$$ transferring word [20-20] from the processor to the cache",
        "$$$ transferring word [20-23] from the cache to the memory",
        "$$$ transferring word [4-7] from the memory to the cache",
        "$$$ transferring word [4-4] from the cache to the processor",
        "End of run statistics:",
        "hits 1, misses 4, writebacks 1",
        "0 dirty cache blocks left",
    ])
    self.assertIn("Main memory accesses: 20", lines)
    self.assertIn("Words moved from memory: 16", lines)
    self.assertIn("Words written to memory: 4", lines)
    self.assertIn("Clean evictions logged: 1", lines)
    self.assertIn("Blocks flushed: 0", lines)

    # The written word reached memory; its neighbours are unchanged.
    self.assertEqual(simulation.memory.words[20:24], [99, 1021, 1022, 1023])

  def test_lru_behaviour(self):
    simulation = SimulationEnvironment(2, 1, 2, debug_mode=True,
        out=self.out)
    simulation.simulate(_trace("lru_trace.out"))

    cache = simulation.cache
    self.assertEqual(cache.hits, 3)
    self.assertEqual(cache.misses, 4)
    self.assertEqual(cache.writebacks, 1)

    # Way 0 holds [4-5], written to; way 1 holds [0-1].
    block = cache.get_block(0, 0)
    self.assertEqual(block.tag, 2)
    self.assertEqual(block.state, SlotState.DIRTY)
    self.assertEqual(block.data, [0, 8])

    block = cache.get_block(0, 1)
    self.assertEqual(block.tag, 0)
    self.assertEqual(block.state, SlotState.CLEAN)

    self.assertEqual(simulation.memory.words[3], 7)

    lines = self.out.getvalue().splitlines()
    self.assertIn("$$$ transferring word [0-1] from the cache to nowhere",
        lines)
    self.assertIn("$$$ transferring word [2-3] from the cache to the memory",
        lines)

    simulation.report_stats()
    self.assertIn("1 dirty cache blocks left",
        self.out.getvalue().splitlines())

  def test_bad_traces(self):
    simulation = SimulationEnvironment(4, 2, 1, out=self.out)

    with self.assertRaises(ValueError) as context:
      simulation.simulate(self._write_trace("R 0\nX 4\n"))
    self.assertIn(":2:", str(context.exception))

    with self.assertRaises(ValueError):
      simulation.simulate(self._write_trace("W 4\n"))

    with self.assertRaises(ValueError):
      simulation.simulate(self._write_trace("R four\n"))

  def test_stats_file(self):
    simulation = SimulationEnvironment(4, 2, 1, out=self.out)
    simulation.simulate(_trace("scenario_trace.out"))

    stats_filename = os.path.join(self.temp_dir, "stats.dat")
    simulation.write_stats_line(stats_filename)
    simulation.write_stats_line(stats_filename)

    with open(stats_filename, "r") as stats_file:
      self.assertEqual(stats_file.read(), "1 4 1 0\n1 4 1 0\n")

  def test_print_cache(self):
    simulation = SimulationEnvironment(2, 1, 2, out=self.out)
    simulation.simulate(_trace("lru_trace.out"))

    simulation.print_cache()
    lines = self.out.getvalue().splitlines()

    self.assertEqual(lines[-5:], [
        "cache:",
        "\tset 0:",
        "\t\t[ 0 ]: { 0 8 }",
        "\t\t[ 1 ]: { 0 0 }",
        "end cache",
    ])

  def test_main(self):
    stats_filename = os.path.join(self.temp_dir, "stats.dat")

    with capture_output() as out:
      status = main(["-c", "-f", "-o", stats_filename, "2", "1", "2",
          _trace("lru_trace.out")])

    self.assertEqual(status, 0)
    self.assertIn("$$$ transferring word [4-5] from the cache to the memory",
        out[0])
    self.assertIn("end cache", out[0])
    self.assertIn("hits 3, misses 4, writebacks 1", out[0])
    self.assertIn("Blocks flushed: 1", out[0])
    self.assertIn("0 dirty cache blocks left", out[0])

    with open(stats_filename, "r") as stats_file:
      self.assertEqual(stats_file.read(), "3 4 1 0\n")

  def test_main_errors(self):
    with capture_output() as out:
      status = main(["4", "512", "1", _trace("scenario_trace.out")])
    self.assertEqual(status, 1)
    self.assertIn("error: cache must be no larger than 256 blocks", out[1])

    with capture_output() as out:
      status = main(["4", "0", "1", _trace("scenario_trace.out")])
    self.assertEqual(status, 1)
    self.assertIn("error: input parameters must be positive numbers", out[1])

    with capture_output() as out:
      status = main(["4", "2", _trace("scenario_trace.out")])
    self.assertEqual(status, 2)


if __name__ == "__main__":
  unittest.main()
