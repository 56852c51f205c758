"""Relief export pipeline: tiles, rasters, contours, SVG and archives."""
