"""
Configuration for the static site asset pipeline
"""
import os
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Paths (relative to the project root unless absolute)
BASE_DIR = Path(os.getenv("SITE_ROOT", Path.cwd()))
SRC_PATH = os.getenv("SRC_PATH", "src")
BUILD_PATH = os.getenv("BUILD_PATH", "build")
INCLUDE_ROOT = os.getenv("INCLUDE_ROOT", ".")  # "@root" for @@include

# Fixed logical output names
CSS_BUNDLE_FILENAME = "style.min.css"
JS_BUNDLE_FILENAME = "script.min.js"
SVG_SPRITE_FILENAME = "sprite.svg"
REV_MANIFEST_FILENAME = "rev-manifest.json"

# Image optimization
JPEG_QUALITY = int(os.getenv("JPEG_QUALITY", "90"))
WEBP_QUALITY = int(os.getenv("WEBP_QUALITY", "90"))

# JS bundler (esbuild executable)
JS_BUNDLER = os.getenv("JS_BUNDLER", "esbuild")
JS_TARGET = os.getenv("JS_TARGET", "es2015")

# Cache busting
REV_HASH_LENGTH = int(os.getenv("REV_HASH_LENGTH", "10"))

# Watcher
WATCH_DEBOUNCE_MS = int(os.getenv("WATCH_DEBOUNCE_MS", "100"))

# GitHub Pages deploy
GH_PAGES_REMOTE = os.getenv("GH_PAGES_REMOTE", "origin")
GH_PAGES_BRANCH = os.getenv("GH_PAGES_BRANCH", "gh-pages")
GH_PAGES_MESSAGE = os.getenv("GH_PAGES_MESSAGE", "Updates")

# Dev server configuration
HOST = os.getenv("HOST", "127.0.0.1")
PORT = int(os.getenv("PORT", "3000"))
CORS_ORIGINS = ["*"]
