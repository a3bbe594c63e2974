import matplotlib.pyplot as plt
import numpy as np
import sys


def main():
  if len(sys.argv) < 2:
    print("Usage: %s data_file [label ...]" % sys.argv[0])
    return

  # hits, misses, writebacks (dirty blocks are ignored).
  N = 3

  data = []
  with open(sys.argv[1], "r") as f:
    for line in f:
      stripped_line = line.strip()
      if len(stripped_line) == 0:
        continue
      parts = stripped_line.split()
      if len(parts) != N + 1:
        raise ValueError(
            "Unexpected number of parts in line '%s'" % stripped_line)
      data.append([float(part) for part in parts[:N]])

  if len(data) == 0:
    raise ValueError("No statistics found in %s." % sys.argv[1])

  names = sys.argv[2:]
  if len(names) < len(data):
    names += ["Run %s" % i for i in range(len(names), len(data))]

  indices = np.arange(N)
  width = 0.8 / len(data)

  fig = plt.figure()
  ax = fig.add_subplot(111)

  colors = ['#EF2929', '#729FCF', '#F57900', '#73D216']

  rects = []
  for (i, values) in enumerate(data):
    left = indices + (i * width)
    color = colors[i % len(colors)]
    rects.append(ax.bar(left, values, width, color=color))

  ax.set_title("Cache Statistics")
  ax.set_ylabel('Count')
  ax.set_xticks(indices + 0.4 - (width / 2))
  ax.set_xticklabels(('Hits', 'Misses', 'Write-backs'))

  ax.legend([rect[0] for rect in rects], names[:len(data)], loc='best')

  plt.show()

if __name__ == "__main__":
  main()
