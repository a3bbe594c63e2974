"""The main driver to parse trace files and simulate their contents."""


import logging
import optparse
import sys

import backing_memory
import caching
import cache_stats
import transfers


logger = logging.getLogger(__name__)


class SimulationEnvironment(object):
  """Represents a simulation of a cache in front of a main memory.

  The simulation is able to parse a trace file and simulate its contents."""

  def __init__(self, block_size, number_sets, blocks_per_set,
      memory_image=None, debug_mode=False, out=None):
    """Initializes the simulation, setting up the memory and cache."""

    self.debug_mode = debug_mode
    self.out = out

    self.memory = backing_memory.Memory()
    if memory_image is not None:
      self.memory.load_image(memory_image)

    self.transfer_log = transfers.TransferLog(out)
    self.tracker = cache_stats.CacheStatisticsTracker()

    self.cache = caching.Cache(block_size, number_sets, blocks_per_set,
        self.memory, self.transfer_log, self.tracker)

  def simulate(self, trace_filename):
    """Parses a trace, and simulates its contents.

    The trace is retrieved from the file named in the trace_filename
    argument. Each line is either 'R address' or 'W address data'.

    Returns the list of words returned by the reads, in order."""

    values = []

    with open(trace_filename, "r") as trace_file:
      for (line_number, line) in enumerate(trace_file, 1):
        # Get rid of any comments.
        line = line.split("#")[0].strip()
        if len(line) == 0:
          # Comment line, skip.
          continue

        access_type, address, data = self._parse_line(trace_filename,
            line_number, line)

        if access_type == "R":
          values.append(self.cache.read(address))
        else:
          self.cache.write(address, data)

        # Sanity check. Only done in debug mode as it walks the whole cache.
        if self.debug_mode:
          problems = self.cache.check_invariants()
          if problems:
            raise ValueError("%s:%s: cache inconsistent: %s" % (
                trace_filename, line_number, "; ".join(problems)))

    return values

  def report_stats(self):
    """Prints out statistics on the simulation."""

    stats = self.tracker.get_cache_stats(self.cache)

    self._print("End of run statistics:")
    self._print("hits %i, misses %i, writebacks %i" % (stats["hits"],
        stats["misses"], stats["writebacks"]))
    self._print("%i dirty cache blocks left" % stats["dirty_blocks"])
    self._print("")

    self._print(self._format_line("Hit rate", stats["hits"],
        stats["accesses"]))
    self._print(self._format_line("Read hit rate", stats["read_hits"],
        stats["reads"]))
    self._print(self._format_line("Write hit rate", stats["write_hits"],
        stats["writes"]))
    self._print("Clean blocks discarded: {0}".format(stats["discards"]))
    self._print("Blocks flushed: {0}".format(stats["flushes"]))
    self._print("Distinct blocks loaded: {0}".format(
        stats["distinct_blocks"]))
    self._print("Main memory accesses: {0}".format(self.memory.access_count))
    self._print("Words moved from memory: {0}".format(
        self.transfer_log.word_counts[transfers.TransferType.MEMORY_TO_CACHE]))
    self._print("Words written to memory: {0}".format(
        self.transfer_log.word_counts[transfers.TransferType.CACHE_TO_MEMORY]))
    self._print("Clean evictions logged: {0}".format(
        self.transfer_log.transfer_counts[
        transfers.TransferType.CACHE_TO_NOWHERE]))

  def print_cache(self):
    """Prints out the contents of the cache."""

    self._print(self.cache.dump())

  def write_stats_line(self, stats_filename):
    """Appends the main counters to a data file, for the graphing scripts."""

    stats = self.tracker.get_cache_stats(self.cache)

    with open(stats_filename, "a") as stats_file:
      stats_file.write("%s %s %s %s\n" % (stats["hits"], stats["misses"],
          stats["writebacks"], stats["dirty_blocks"]))

  def _parse_line(self, trace_filename, line_number, line):
    """Splits a trace line into (access_type, address, data)."""

    parts = line.split()
    access_type = parts[0].upper()

    if access_type == "R":
      expected_parts = 2
    elif access_type == "W":
      expected_parts = 3
    else:
      raise ValueError("%s:%s: unknown access type '%s'" % (trace_filename,
          line_number, parts[0]))

    if len(parts) != expected_parts:
      raise ValueError("%s:%s: expected %s fields, found %s" % (
          trace_filename, line_number, expected_parts, len(parts)))

    try:
      address = int(parts[1])
      data = int(parts[2]) if access_type == "W" else 0
    except ValueError:
      raise ValueError("%s:%s: malformed line '%s'" % (trace_filename,
          line_number, line))

    return access_type, address, data

  def _print(self, line):
    out = self.out if self.out is not None else sys.stdout
    out.write(line + "\n")

  def _format_line(self, prefix, numerator, denominator):
    """Formats a ratio line for output."""

    # Determine the output ratio.
    try:
      ratio = float(numerator) / denominator
    except ZeroDivisionError:
      ratio = float("nan")

    ratio_string = "{0:.2%}".format(ratio)

    # Pad so that the ratios line up. 16 is the longest prefix.
    spacer = " " * (16 - len(prefix))

    return "{0}:{1} {2:>7} ({3} of {4})".format(prefix, spacer, ratio_string,
        numerator, denominator)


def main(argv=None):
  """Sets up and executes a simulation of a given trace file.

  Returns the process exit status."""

  usage = ("Usage: %prog [options] block_size number_sets blocks_per_set "
      "trace_file_name")
  parser = optparse.OptionParser(usage=usage)
  parser.add_option(
    "-m",
    "--memory_image",
    action="store",
    default=None,
    dest="memory_image",
    help="A file to initialize main memory from, one word per line.",
    type="string")
  parser.add_option(
    "-c",
    "--print_cache",
    action="store_true",
    default=False,
    dest="print_cache",
    help="Print the cache contents at the end of the run. [default: %default]")
  parser.add_option(
    "-f",
    "--flush",
    action="store_true",
    default=False,
    dest="flush",
    help="Copy all dirty blocks to memory at the end of the run, before the "
        "statistics are reported. These are not counted as write-backs. "
        "[default: %default]")
  parser.add_option(
    "-o",
    "--stats_file",
    action="store",
    default=None,
    dest="stats_file",
    help="Append the end of run counters to this file.",
    type="string")
  parser.add_option(
    "-d",
    "--debug",
    action="store_true",
    default=False,
    dest="debug_mode",
    help="Turn debug mode on. [default: %default]")

  (options, args) = parser.parse_args(argv)

  # The user must provide the cache dimensions and a trace file.
  if len(args) != 4:
    parser.print_help()
    return 2

  logging.basicConfig(
      level=logging.DEBUG if options.debug_mode else logging.INFO,
      format="%(levelname)s: %(message)s")

  try:
    (block_size, number_sets, blocks_per_set) = [int(arg) for arg in args[:3]]
  except ValueError:
    sys.stderr.write("error: cache dimensions must be integers\n")
    return 1

  trace_filename = args[3]
  logger.debug("File: %s", trace_filename)

  try:
    simulation = SimulationEnvironment(
        block_size,
        number_sets,
        blocks_per_set,
        memory_image=options.memory_image,
        debug_mode=options.debug_mode)
    simulation.simulate(trace_filename)

    if options.flush:
      simulation.cache.flush()
  except (ValueError, IOError) as e:
    sys.stderr.write("error: %s\n" % e)
    return 1

  if options.print_cache:
    simulation.print_cache()

  simulation.report_stats()

  if options.stats_file is not None:
    simulation.write_stats_line(options.stats_file)

  return 0


if __name__ == "__main__":
  sys.exit(main())
