import os

# experiments imports pyplot; keep it off any display
os.environ.setdefault("MPLBACKEND", "Agg")
