"""Textual integration — running a component tree as a Textual app.

A Session is created and owned by the caller; there is no global launcher.
It launches the Root once, hands the resulting widget tree to a
DeclarativeApp, and tears the tree down when closed.

DeclarativeApp is where the toolkit couples back into the tree:
    - compose() yields the Root's widget tree
    - on mount, Cell mutations from other threads are marshaled onto the
      app thread (set_scheduler) and the Root goes LIVE
    - every message reaching the app is offered to Root.dispatch(), which
      hands it to the component whose widget sent it
"""

from __future__ import annotations

import logging
from typing import Any

from textual import on
from textual.app import App, ComposeResult
from textual.message import Message
from textual.widget import Widget

from declx.cell import set_scheduler
from declx.component import Component, Phase
from declx.root import Root

logger = logging.getLogger(__name__)


class DeclarativeApp(App):
    """A Textual app whose screen content is a declx component tree."""

    def __init__(self, session: Session, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.session = session

    def compose(self) -> ComposeResult:
        yield self.session.tree

    def on_mount(self) -> None:
        set_scheduler(self.call_from_thread)
        self.session.root.mark_live()
        logger.debug("Session live: %s", self.session.root)

    def on_unmount(self) -> None:
        set_scheduler(None)

    @on(Message)
    def _route_message(self, message: Message) -> None:
        self.session.root.dispatch(message)


class Session:
    """Owns one Root and the Textual app that shows it.

    Usage:
        session = Session(VBox(Label("Hello")), title="Hello")
        session.run()
    """

    def __init__(
        self,
        component: Component,
        *,
        title: str | None = None,
        css: str | None = None,
        css_path: str | None = None,
    ) -> None:
        self.root = component if isinstance(component, Root) else Root(component)
        self.title = title
        self.css = css
        self.css_path = css_path
        self._tree: Widget | None = None
        self._app: DeclarativeApp | None = None

    @property
    def tree(self) -> Widget:
        """The native widget tree; launches the Root on first access."""
        if self._tree is None:
            self._tree = self.root.launch()
        return self._tree

    @property
    def app(self) -> DeclarativeApp:
        return self.build()

    def build(self) -> DeclarativeApp:
        """Launch the Root (once) and create the app around its tree."""
        if self._app is None:
            tree = self.tree
            app_class = DeclarativeApp
            if self.css is not None:
                app_class = type("DeclarativeApp", (DeclarativeApp,), {"CSS": self.css})
            self._app = app_class(self, css_path=self.css_path)
            if self.title is not None:
                self._app.title = self.title
            logger.debug("Session built around %s", type(tree).__name__)
        return self._app

    def run(self, **kwargs: Any) -> Any:
        """Run the app until it exits, then close the session."""
        try:
            return self.build().run(**kwargs)
        finally:
            self.close()

    def close(self) -> None:
        """Tear down the component tree and stop marshaling cell updates."""
        set_scheduler(None)
        if self.root.phase is not Phase.DESTROYED and self._tree is not None:
            self.root.deconstruct()
