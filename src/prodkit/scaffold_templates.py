"""Built-in scaffold templates.

Each template: {"description", "files": {path: content}, "directories", "post_create"}.
{{PROJECT_NAME}}, {{AUTHOR}}, {{EMAIL}} and {{YEAR}} are substituted at create time.
"""

from __future__ import annotations

from typing import Any

_BASH_SCRIPT = '''\
#!/bin/bash
#
# {{PROJECT_NAME}} - Description
#
# Usage:
#   ./{{PROJECT_NAME}}.sh [options]
#

set -euo pipefail

# Configuration
SCRIPT_DIR="$(cd "$(dirname "${BASH_SOURCE[0]}")" && pwd)"

# Colors
RED='\\033[0;31m'
GREEN='\\033[0;32m'
YELLOW='\\033[1;33m'
NC='\\033[0m'

show_help() {
    echo "{{PROJECT_NAME}} - Description"
    echo ""
    echo "Usage:"
    echo "  ./{{PROJECT_NAME}}.sh [options]"
    echo ""
    echo "Options:"
    echo "  -h, --help     Show this help"
}

main() {
    case "${1:-}" in
        -h|--help)
            show_help
            ;;
        *)
            echo "Hello from {{PROJECT_NAME}}!"
            ;;
    esac
}

main "$@"
'''

_PYTHON_CLI = '''\
#!/usr/bin/env python3
"""
{{PROJECT_NAME}} - Description

Usage:
    python {{PROJECT_NAME}}.py [options]
"""

import argparse
import sys


def main():
    parser = argparse.ArgumentParser(description='{{PROJECT_NAME}}')
    parser.add_argument('-v', '--verbose', action='store_true', help='Verbose output')
    args = parser.parse_args()

    print(f'Hello from {{PROJECT_NAME}}!')
    return 0


if __name__ == '__main__':
    sys.exit(main())
'''

_PYTHON_GITIGNORE = '''\
# Python
__pycache__/
*.py[cod]
*$py.class
*.so
.Python
venv/
.venv/
ENV/

# IDE
.vscode/
.idea/
*.swp
*~

# Logs
*.log
'''

_PACKAGE_INIT = '''\
"""
{{PROJECT_NAME}} - Description
"""

__version__ = '0.1.0'
__author__ = '{{AUTHOR}}'
'''

_PACKAGE_MAIN = '''\
"""
Main module for {{PROJECT_NAME}}
"""


def main():
    """Entry point."""
    print('Hello from {{PROJECT_NAME}}!')


if __name__ == '__main__':
    main()
'''

_PACKAGE_TEST = '''\
"""Tests for {{PROJECT_NAME}}"""

import unittest
from {{PROJECT_NAME}} import main


class TestMain(unittest.TestCase):
    def test_placeholder(self):
        self.assertTrue(True)


if __name__ == '__main__':
    unittest.main()
'''

_PACKAGE_SETUP = '''\
from setuptools import setup, find_packages

with open('README.md', 'r') as f:
    long_description = f.read()

setup(
    name='{{PROJECT_NAME}}',
    version='0.1.0',
    author='{{AUTHOR}}',
    description='Description',
    long_description=long_description,
    long_description_content_type='text/markdown',
    packages=find_packages(),
    python_requires='>=3.8',
    install_requires=[],
    entry_points={
        'console_scripts': [
            '{{PROJECT_NAME}}={{PROJECT_NAME}}.main:main',
        ],
    },
)
'''

_PACKAGE_README = '''\
# {{PROJECT_NAME}}

Description

## Installation

```bash
pip install -e .
```

## Usage

```python
from {{PROJECT_NAME}} import main
main.main()
```

## Development

```bash
python -m pytest tests/
```

## License

MIT
'''

_PACKAGE_GITIGNORE = '''\
# Python
__pycache__/
*.py[cod]
*$py.class
*.so
.Python
dist/
build/
*.egg-info/
venv/
.venv/

# IDE
.vscode/
.idea/
*.swp

# Testing
.pytest_cache/
.coverage
htmlcov/
'''

_NODE_INDEX = '''\
#!/usr/bin/env node

/**
 * {{PROJECT_NAME}}
 * Description
 */

const args = process.argv.slice(2);

function main() {
    if (args.includes('--help') || args.includes('-h')) {
        console.log('{{PROJECT_NAME}} - Description');
        console.log('');
        console.log('Usage:');
        console.log('  node index.js [options]');
        console.log('');
        console.log('Options:');
        console.log('  -h, --help     Show this help');
        process.exit(0);
    }

    console.log('Hello from {{PROJECT_NAME}}!');
}

main();
'''

_NODE_PACKAGE = '''\
{
  "name": "{{PROJECT_NAME}}",
  "version": "1.0.0",
  "description": "Description",
  "main": "index.js",
  "bin": {
    "{{PROJECT_NAME}}": "./index.js"
  },
  "scripts": {
    "start": "node index.js",
    "test": "echo \\"Error: no test specified\\" && exit 1"
  },
  "keywords": [],
  "author": "{{AUTHOR}}",
  "license": "MIT"
}
'''

_NODE_GITIGNORE = "node_modules/\nnpm-debug.log\n*.log\n.env\n"

_EXPRESS_INDEX = '''\
const express = require('express');

const app = express();
const PORT = process.env.PORT || 3000;

app.use(express.json());

// Health check
app.get('/health', (req, res) => {
    res.json({ status: 'ok', timestamp: new Date().toISOString() });
});

// API routes
app.get('/api', (req, res) => {
    res.json({ message: 'Welcome to {{PROJECT_NAME}} API' });
});

// 404 handler
app.use((req, res) => {
    res.status(404).json({ error: 'Not found' });
});

// Error handler
app.use((err, req, res, next) => {
    console.error(err.stack);
    res.status(500).json({ error: 'Internal server error' });
});

app.listen(PORT, () => {
    console.log(`{{PROJECT_NAME}} running on http://localhost:${PORT}`);
});
'''

_EXPRESS_PACKAGE = '''\
{
  "name": "{{PROJECT_NAME}}",
  "version": "1.0.0",
  "description": "Express API",
  "main": "index.js",
  "scripts": {
    "start": "node index.js",
    "dev": "node --watch index.js"
  },
  "dependencies": {
    "express": "^4.18.0"
  },
  "author": "{{AUTHOR}}",
  "license": "MIT"
}
'''

_EXPRESS_README = '''\
# {{PROJECT_NAME}}

Express.js REST API

## Setup

```bash
npm install
```

## Run

```bash
npm start
# or for development
npm run dev
```

## API Endpoints

- `GET /health` - Health check
- `GET /api` - API info

## License

MIT
'''

_HTML_INDEX = '''\
<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{{PROJECT_NAME}}</title>
    <link rel="stylesheet" href="styles.css">
</head>
<body>
    <header>
        <h1>{{PROJECT_NAME}}</h1>
    </header>
    <main>
        <p>Welcome to {{PROJECT_NAME}}!</p>
    </main>
    <footer>
        <p>&copy; {{YEAR}} {{AUTHOR}}</p>
    </footer>
    <script src="script.js"></script>
</body>
</html>
'''

_HTML_STYLES = '''\
/* Reset */
* {
    margin: 0;
    padding: 0;
    box-sizing: border-box;
}

/* Base styles */
body {
    font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;
    line-height: 1.6;
    color: #333;
    max-width: 1200px;
    margin: 0 auto;
    padding: 2rem;
}

header {
    margin-bottom: 2rem;
}

h1 {
    color: #2c3e50;
}

main {
    min-height: 60vh;
}

footer {
    margin-top: 2rem;
    padding-top: 1rem;
    border-top: 1px solid #eee;
    color: #666;
    font-size: 0.9rem;
}
'''

_HTML_SCRIPT = '''\
// {{PROJECT_NAME}} JavaScript

document.addEventListener('DOMContentLoaded', () => {
    console.log('{{PROJECT_NAME}} loaded');
});
'''

_MAKEFILE = (
    ".PHONY: all build clean test help\n"
    "\n"
    "PROJECT := {{PROJECT_NAME}}\n"
    "VERSION := 0.1.0\n"
    "\n"
    "all: build\n"
    "\n"
    "build:\n"
    '\t@echo "Building $(PROJECT)..."\n'
    '\t@echo "Done."\n'
    "\n"
    "test:\n"
    '\t@echo "Running tests..."\n'
    '\t@echo "All tests passed."\n'
    "\n"
    "clean:\n"
    '\t@echo "Cleaning..."\n'
    "\t@rm -rf build/ dist/\n"
    '\t@echo "Done."\n'
    "\n"
    "help:\n"
    '\t@echo "{{PROJECT_NAME}} Makefile"\n'
    '\t@echo ""\n'
    '\t@echo "Targets:"\n'
    '\t@echo "  build   Build the project"\n'
    '\t@echo "  test    Run tests"\n'
    '\t@echo "  clean   Clean build artifacts"\n'
    '\t@echo "  help    Show this help"\n'
)

_DOCKERFILE = '''\
FROM python:3.11-slim

WORKDIR /app

COPY requirements.txt .
RUN pip install --no-cache-dir -r requirements.txt

COPY . .

EXPOSE 8000

CMD ["python", "app.py"]
'''

_COMPOSE = '''\
version: '3.8'

services:
  {{PROJECT_NAME}}:
    build: .
    ports:
      - "8000:8000"
    environment:
      - DEBUG=false
    volumes:
      - ./data:/app/data
    restart: unless-stopped
'''

_DOCKER_APP = '''\
#!/usr/bin/env python3
"""{{PROJECT_NAME}} service"""

from http.server import HTTPServer, SimpleHTTPRequestHandler
import json

class Handler(SimpleHTTPRequestHandler):
    def do_GET(self):
        if self.path == '/health':
            self.send_response(200)
            self.send_header('Content-type', 'application/json')
            self.end_headers()
            self.wfile.write(json.dumps({'status': 'ok'}).encode())
        else:
            self.send_response(200)
            self.send_header('Content-type', 'text/plain')
            self.end_headers()
            self.wfile.write(b'Hello from {{PROJECT_NAME}}!')

if __name__ == '__main__':
    server = HTTPServer(('0.0.0.0', 8000), Handler)
    print('{{PROJECT_NAME}} running on http://0.0.0.0:8000')
    server.serve_forever()
'''


def _readme(intro: str, sections: list[tuple[str, str]]) -> str:
    body = "".join(f"## {title}\n\n```bash\n{cmd}\n```\n\n" for title, cmd in sections)
    return f"# {{{{PROJECT_NAME}}}}\n\n{intro}\n\n{body}## License\n\nMIT\n"


BUILTIN_TEMPLATES: dict[str, dict[str, Any]] = {
    "bash-script": {
        "description": "Simple bash script project",
        "files": {
            "{{PROJECT_NAME}}.sh": _BASH_SCRIPT,
            "README.md": _readme("A bash script for...", [
                ("Installation", "chmod +x {{PROJECT_NAME}}.sh"),
                ("Usage", "./{{PROJECT_NAME}}.sh [options]"),
            ]),
            ".gitignore": "# Logs\n*.log\n\n# Data files\ndata/\n\n# Temp files\n*.tmp\n*~\n",
        },
        "directories": [],
        "post_create": ["chmod +x {{PROJECT_NAME}}.sh"],
    },
    "python-cli": {
        "description": "Python command-line application",
        "files": {
            "{{PROJECT_NAME}}.py": _PYTHON_CLI,
            "README.md": _readme("A Python CLI tool for...", [
                ("Installation", "pip install -r requirements.txt"),
                ("Usage", "python {{PROJECT_NAME}}.py [options]"),
            ]),
            "requirements.txt": "# Add your dependencies here\n",
            ".gitignore": _PYTHON_GITIGNORE,
        },
        "directories": [],
        "post_create": ["chmod +x {{PROJECT_NAME}}.py"],
    },
    "python-package": {
        "description": "Python package with setup.py and tests",
        "files": {
            "{{PROJECT_NAME}}/__init__.py": _PACKAGE_INIT,
            "{{PROJECT_NAME}}/main.py": _PACKAGE_MAIN,
            "tests/__init__.py": "",
            "tests/test_main.py": _PACKAGE_TEST,
            "setup.py": _PACKAGE_SETUP,
            "README.md": _PACKAGE_README,
            "requirements.txt": "# Development dependencies\npytest>=7.0\n",
            ".gitignore": _PACKAGE_GITIGNORE,
        },
        "directories": ["{{PROJECT_NAME}}", "tests"],
        "post_create": [],
    },
    "node-cli": {
        "description": "Node.js CLI application",
        "files": {
            "index.js": _NODE_INDEX,
            "package.json": _NODE_PACKAGE,
            "README.md": _readme("Description", [
                ("Installation", "npm install"),
                ("Usage", "node index.js [options]"),
            ]),
            ".gitignore": _NODE_GITIGNORE,
        },
        "directories": [],
        "post_create": ["chmod +x index.js"],
    },
    "express-api": {
        "description": "Express.js REST API starter",
        "files": {
            "index.js": _EXPRESS_INDEX,
            "package.json": _EXPRESS_PACKAGE,
            "README.md": _EXPRESS_README,
            ".gitignore": _NODE_GITIGNORE,
            ".env.example": "PORT=3000\n",
        },
        "directories": [],
        "post_create": [],
    },
    "html-page": {
        "description": "Simple HTML/CSS/JS page",
        "files": {
            "index.html": _HTML_INDEX,
            "styles.css": _HTML_STYLES,
            "script.js": _HTML_SCRIPT,
            "README.md": "# {{PROJECT_NAME}}\n\nA simple HTML page.\n\n## Usage\n\nOpen `index.html` in your browser.\n\n## License\n\nMIT\n",
        },
        "directories": [],
        "post_create": [],
    },
    "makefile-project": {
        "description": "Project with Makefile",
        "files": {
            "Makefile": _MAKEFILE,
            "README.md": _readme("Description", [
                ("Build", "make build"),
                ("Test", "make test"),
                ("Clean", "make clean"),
            ]),
            ".gitignore": "build/\ndist/\n*.o\n*.a\n*.so\n*~\n",
        },
        "directories": [],
        "post_create": [],
    },
    "docker-service": {
        "description": "Docker service with docker-compose",
        "files": {
            "Dockerfile": _DOCKERFILE,
            "docker-compose.yml": _COMPOSE,
            "app.py": _DOCKER_APP,
            "requirements.txt": "# Add dependencies here\n",
            "README.md": _readme("Docker-based service.", [
                ("Build", "docker-compose build"),
                ("Run", "docker-compose up"),
                ("Stop", "docker-compose down"),
            ]),
            ".gitignore": "data/\n*.log\n.env\n",
            ".dockerignore": ".git\n.gitignore\nREADME.md\ndata/\n*.log\n",
        },
        "directories": ["data"],
        "post_create": [],
    },
}

NEXT_STEPS: dict[str, list[str]] = {
    "node-cli": ["npm install", "npm start"],
    "express-api": ["npm install", "npm start"],
    "python-cli": ["python {{PROJECT_NAME}}.py"],
    "python-package": ["pip install -e .", "python -m pytest tests/"],
    "bash-script": ["./{{PROJECT_NAME}}.sh"],
    "docker-service": ["docker-compose up"],
    "makefile-project": ["make build"],
}

CUSTOM_SKELETON: dict[str, Any] = {
    "description": "Custom template",
    "files": {
        "README.md": "# {{PROJECT_NAME}}\n\nDescription\n",
        "main.sh": "#!/bin/bash\necho 'Hello from {{PROJECT_NAME}}'\n",
    },
    "directories": [],
    "post_create": ["chmod +x main.sh"],
}
