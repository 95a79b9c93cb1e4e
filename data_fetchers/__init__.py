# data_fetchers/__init__.py
# -------------------------------
# Data integrations for the dashboard:
# - local_data.py   (lottery table + local-housing side table from disk)
# - subscribers.py  (batched subscriber counts from the Dira API)
# -------------------------------
