"""Observable containers shared by batch operations."""

from lazybatch.data.observable import ListChange, Observable, ObservableList, PropertyChange

__all__ = ['ListChange', 'Observable', 'ObservableList', 'PropertyChange']
