"""
Sticker Export Pipeline

Per-image stages:
1. Decode - any common raster format to RGBA
2. Background - corner-sampled chroma-distance removal (best effort)
3. Normalize - pad to square, cover-fit to 512x512
4. Encode - WebP quality ladder under a 100 KiB budget

Packs run the per-image pipeline over up to 30 sources and zip the results
with a pack.json manifest.
"""
