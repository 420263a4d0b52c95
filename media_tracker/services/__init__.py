"""Application services for Media Tracker."""
