# Scrapy settings for scraper project

BOT_NAME = "scraper"

SPIDER_MODULES = ["scraper.spiders"]
NEWSPIDER_MODULE = "scraper.spiders"

ADDONS = {}

# Reddit sirve los listings JSON sin robots
ROBOTSTXT_OBEY = False

# ⚡ Controlar la velocidad de scraping (mismo ritmo que el fetcher async)
CONCURRENT_REQUESTS_PER_DOMAIN = 1
DOWNLOAD_DELAY = 2   # espera 2 segundos entre requests

# 429 -> reintento con backoff
RETRY_ENABLED = True
RETRY_TIMES = 2
RETRY_HTTP_CODES = [429, 500, 502, 503, 504]
AUTOTHROTTLE_ENABLED = True
AUTOTHROTTLE_START_DELAY = 5

DEFAULT_REQUEST_HEADERS = {
    "Accept": "application/json",
    "Accept-Language": "en-US,en;q=0.9",
}

ITEM_PIPELINES = {
    "scraper.pipelines.IdeaFilterPipeline": 300,
}

# Encoding de los archivos exportados
FEED_EXPORT_ENCODING = "utf-8"
