"""HTTP collaborators: request descriptor, response sinks, headers, params."""
