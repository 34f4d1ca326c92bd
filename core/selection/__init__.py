"""
Package core.selection - Domain types va range helpers cho selections.

Modules:
- types: SelectionItem, Bundle, ItemEstimate, BundleSummary
- ranges: normalize/merge helpers dung boi SelectionStore
"""
