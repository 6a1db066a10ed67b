"""Resumable archiver for one community art site.

Walks a watcher's follow list and each creator's gallery/scraps pages, and
saves every submission's file plus its view page into a local archive that
doubles as the resume index.

Key modules:
    transport    -- Transport: retrying, load-aware GET with cookie support
    backoff      -- RetryPolicy for the fixed retry interval
    throttle     -- LoadThrottle and registered-users parsing
    cookies      -- cookies.txt parsing
    archive      -- archive marker check and fsync'd writes
    base         -- PageWalker pagination template
    watchlist    -- FollowListCrawler
    gallery      -- GalleryCrawler
    submission   -- SubmissionDownloader
    orchestrator -- CrawlOrchestrator
    models       -- Creator, Artifact, CrawlPage and friends
    config       -- CrawlerConfig
    log          -- JSON log formatter
"""

__version__ = "2.0.0"
