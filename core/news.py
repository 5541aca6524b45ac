# =============================================================================
# core/news.py  —  Crypto News Search
# =============================================================================
#
# Posts the caller's filters to the upstream news list and renders the
# matching headlines as a numbered list.  An empty list and a failed call
# read the same to the agent: "No news found".
# =============================================================================

from typing import Any

from core.api_client import ApiClient
from core.models import NewsArticle

NEWS_LIST_PATH = "v1/news-links/news-list/1"

NO_NEWS_TEXT = "No news found"


async def fetch_news(client: ApiClient, filters: dict[str, Any]) -> list[NewsArticle]:
    """Fetch news articles matching ``filters``.

    Filters whose value is None are left out of the request body so the
    upstream applies its own defaults.
    """
    body = {key: value for key, value in filters.items() if value is not None}
    response = await client.request(NEWS_LIST_PATH, method="POST", json=body)

    if not isinstance(response, dict):
        return []
    data = response.get("data")
    docs = data.get("docs") if isinstance(data, dict) else None
    if not isinstance(docs, list):
        return []

    articles = (NewsArticle.from_dict(doc) for doc in docs)
    return [article for article in articles if article is not None]


def format_headlines(articles: list[NewsArticle]) -> str:
    return "\n".join(f"{i}. {article.title}" for i, article in enumerate(articles, start=1))


async def news_text(client: ApiClient, filters: dict[str, Any]) -> str:
    articles = await fetch_news(client, filters)
    if not articles:
        return NO_NEWS_TEXT
    return format_headlines(articles)
