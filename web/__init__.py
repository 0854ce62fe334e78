"""Flask web app exposing the product QC pipeline."""
