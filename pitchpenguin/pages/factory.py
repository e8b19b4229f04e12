from typing import Dict, Type
from pitchpenguin.pages.base import Page, PageContext
from pitchpenguin.pages.lobby import LobbyPage
from pitchpenguin.pages.reveal import RevealPage, VotePage
from pitchpenguin.pages.results import FinalRoundPage, ResultsPage
from pitchpenguin.pages.round import DealPage, PitchPage

PAGES: Dict[str, Type[Page]] = {
    page.name: page
    for page in (LobbyPage, DealPage, PitchPage, RevealPage, VotePage, ResultsPage, FinalRoundPage)
}


def create_page(name: str, ctx: PageContext) -> Page:
    try:
        return PAGES[name](ctx)
    except KeyError:
        raise ValueError(f"Unknown page: {name}") from None
