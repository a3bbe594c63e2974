"""The main memory behind the cache."""


import logging


logger = logging.getLogger(__name__)


class Memory(object):
  """Represents a word-addressable main memory.

  All traffic goes through access(), which reads or writes exactly one word
  and is counted."""

  # Addresses are 16-bit word addresses.
  DEFAULT_NUMBER_WORDS = 65536

  def __init__(self, number_words=DEFAULT_NUMBER_WORDS):
    if number_words <= 0:
      raise ValueError("number_words must be positive!")

    self.words = [0] * number_words
    self.access_count = 0

  def access(self, address, write_flag, write_data=0):
    """Reads or writes a single word.

    If write_flag is set, write_data is stored at address. Either way the
    word now at address is returned."""

    if address < 0 or address >= len(self.words):
      raise ValueError("address %s is outside of memory [0-%s]!" % (address,
          len(self.words) - 1))

    self.access_count += 1

    if write_flag:
      self.words[address] = write_data

    return self.words[address]

  def __len__(self):
    return len(self.words)

  def load_image(self, filename):
    """Loads a machine-code image into memory, starting at address 0.

    The image holds one integer per line. Blank lines and anything after a
    '#' are ignored. Loading does not count as memory accesses."""

    address = 0
    with open(filename, "r") as image_file:
      for (line_number, line) in enumerate(image_file, 1):
        line = line.split("#")[0].strip()
        if len(line) == 0:
          continue

        try:
          word = int(line)
        except ValueError:
          raise ValueError("%s:%s: '%s' is not a word" % (filename,
              line_number, line))

        if address >= len(self.words):
          raise ValueError("%s does not fit in %s words of memory" % (filename,
              len(self.words)))

        self.words[address] = word
        address += 1

    logger.info("Loaded %s words from %s", address, filename)

    return address
