"""
Server-side HTML document the chart is mounted into.
"""
from typing import Dict, Optional

from bs4 import BeautifulSoup, Tag

from viz.config import CHART_CONTAINER_ID

BLANK_PAGE = (
    "<!DOCTYPE html>"
    "<html><head><meta charset=\"utf-8\"><title>{title}</title></head>"
    "<body><div id=\"{container_id}\"></div></body></html>"
)


class ChartDocument:
    """A BeautifulSoup document with the helpers the mounter needs."""

    def __init__(self, html: Optional[str] = None, title: str = "Viz Insights"):
        self.soup = BeautifulSoup(
            html or BLANK_PAGE.format(title=title, container_id=CHART_CONTAINER_ID),
            "html.parser",
        )

    @property
    def head(self) -> Tag:
        if self.soup.head is None:
            head = self.soup.new_tag("head")
            root = self.soup.html or self.soup
            root.insert(0, head)
        return self.soup.head

    @property
    def body(self) -> Tag:
        if self.soup.body is None:
            body = self.soup.new_tag("body")
            (self.soup.html or self.soup).append(body)
        return self.soup.body

    def get_element_by_id(self, element_id: str) -> Optional[Tag]:
        return self.soup.find(id=element_id)

    def ensure_container(self, container_id: str = CHART_CONTAINER_ID) -> Tag:
        container = self.get_element_by_id(container_id)
        if container is None:
            container = self.new_tag("div", {"id": container_id})
            self.body.append(container)
        return container

    def new_tag(self, name: str, attrs: Optional[Dict[str, str]] = None) -> Tag:
        return self.soup.new_tag(name, attrs=attrs or {})

    def has_script(self, src: str) -> bool:
        return self.soup.find("script", src=src) is not None

    def render(self) -> str:
        return str(self.soup)
