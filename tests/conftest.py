import matplotlib

# headless runs
matplotlib.use("Agg")
