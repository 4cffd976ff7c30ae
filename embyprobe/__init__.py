"""embyprobe: Emby server reachability and Cloudflare routing check."""

__version__ = "0.1.0"
