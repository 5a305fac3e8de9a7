"""declx: declarative component trees with reactive bindings for Textual."""

from importlib.metadata import version as _version

__version__ = _version("declx")

from declx.cell import Cell, computed, set_scheduler
from declx.collection import ListChange, ReactiveList
from declx.component import Component, Phase
from declx.context import Binding, Consumer, Context, Provider
from declx.errors import BindError, ConstructionError, CyclicBindingError, DeclxError, LifecycleError
from declx.properties import Accessor, PropertyRegistry, registry
from declx.root import Root
from declx.textual import DeclarativeApp, Session
from declx.widget import Native, NativeContainer, WidgetComponent
# components and testing NOT auto-imported: `from declx.components import VBox, ...`

__all__ = [
    "Accessor",
    "BindError",
    "Binding",
    "Cell",
    "Component",
    "ConstructionError",
    "Consumer",
    "Context",
    "CyclicBindingError",
    "DeclarativeApp",
    "DeclxError",
    "LifecycleError",
    "ListChange",
    "Native",
    "NativeContainer",
    "Phase",
    "PropertyRegistry",
    "Provider",
    "ReactiveList",
    "Root",
    "Session",
    "WidgetComponent",
    "computed",
    "registry",
    "set_scheduler",
]
