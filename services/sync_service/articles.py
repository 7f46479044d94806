"""Markdown article files with YAML front matter."""

import logging
import time
import uuid
from pathlib import Path
from typing import Dict, List

import yaml

from shared.models import LocalArticle

logger = logging.getLogger(__name__)


def generate_article_id() -> str:
    """Millisecond timestamp plus a random suffix."""
    return f"{int(time.time() * 1000)}-{uuid.uuid4().hex[:9]}"


def front_matter(article: LocalArticle) -> Dict[str, str]:
    """Front matter fields in output order; absent category and tags are omitted."""
    fields = {
        "title": article.title,
        "date": article.date,
        "readTime": article.read_time,
    }
    if article.category:
        fields["category"] = article.category
    if article.tags:
        fields["tags"] = ", ".join(article.tags)
    return fields


def render_article(article: LocalArticle) -> str:
    """Front matter block followed by the body."""
    header = yaml.safe_dump(
        front_matter(article),
        allow_unicode=True,
        sort_keys=False,
        width=1000
    )
    return f"---\n{header}---\n\n{article.content}"


class ArticleStore:
    """The directory of ``<articleId>.md`` files read by the blog front end."""

    def __init__(self, articles_dir: Path):
        self.articles_dir = Path(articles_dir)

    def path_for(self, article_id: str) -> Path:
        return self.articles_dir / f"{article_id}.md"

    def write(self, article: LocalArticle) -> Path:
        self.articles_dir.mkdir(parents=True, exist_ok=True)
        path = self.path_for(article.id)
        path.write_text(render_article(article), encoding="utf-8")
        logger.debug(f"Wrote article {path}")
        return path

    def delete(self, article_id: str) -> bool:
        """Remove an article file; False if it was already gone."""
        path = self.path_for(article_id)
        if not path.exists():
            return False
        path.unlink()
        logger.info(f"Deleted article {path}")
        return True

    def list_ids(self) -> List[str]:
        if not self.articles_dir.exists():
            return []
        return sorted(path.stem for path in self.articles_dir.glob("*.md"))

    def read(self, article_id: str) -> str:
        return self.path_for(article_id).read_text(encoding="utf-8")

    def replace_content(self, article_id: str, text: str) -> None:
        """Overwrite a whole article file, front matter included."""
        self.path_for(article_id).write_text(text, encoding="utf-8")
