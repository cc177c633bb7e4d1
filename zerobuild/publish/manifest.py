"""Files that make up a publishable Expo project."""

import json
from typing import Any

import yaml

from zerobuild.models import PublishManifest, slugify

WORKFLOW_PATH = ".github/workflows/build.yml"

EXPO_DEPENDENCIES = {
    "expo": "~52.0.0",
    "expo-status-bar": "~2.0.1",
    "react": "18.3.1",
    "react-native": "0.76.9",
}


def package_json(slug: str) -> dict[str, Any]:
    return {
        "name": slug,
        "version": "1.0.0",
        "main": "App.js",
        "scripts": {
            "start": "expo start",
            "android": "expo start --android",
            "ios": "expo start --ios",
            "web": "expo start --web",
        },
        "dependencies": dict(EXPO_DEPENDENCIES),
        "devDependencies": {"@babel/core": "^7.20.0"},
    }


def app_json(app_name: str, slug: str) -> dict[str, Any]:
    return {
        "expo": {
            "name": app_name,
            "slug": slug,
            "version": "1.0.0",
            "orientation": "portrait",
            "android": {"package": f"com.zerobuild.{slug.replace('-', '')}"},
        }
    }


def build_workflow(branch: str = "main") -> dict[str, Any]:
    """GitHub Actions workflow that exports the Android bundle on every push."""
    return {
        "name": "Build APK",
        "on": {
            "push": {"branches": [branch]},
            "workflow_dispatch": None,
        },
        "jobs": {
            "build": {
                "runs-on": "ubuntu-latest",
                "steps": [
                    {"uses": "actions/checkout@v4"},
                    {
                        "name": "Setup Node.js",
                        "uses": "actions/setup-node@v4",
                        "with": {"node-version": 20},
                    },
                    {"name": "Install dependencies", "run": "npm install"},
                    {
                        "name": "Setup Expo",
                        "uses": "expo/expo-github-action@v8",
                        "with": {
                            "expo-version": "latest",
                            "token": "${{ secrets.EXPO_TOKEN }}",
                        },
                    },
                    {"name": "Build APK", "run": "npx expo export --platform android"},
                    {
                        "name": "Upload APK artifact",
                        "uses": "actions/upload-artifact@v4",
                        "with": {
                            "name": "android-build",
                            "path": "dist/",
                            "retention-days": 30,
                        },
                    },
                ],
            }
        },
    }


def build_expo_manifest(app_name: str, code: str, branch: str = "main") -> PublishManifest:
    slug = slugify(app_name)
    return PublishManifest.from_files([
        ("App.js", code),
        ("package.json", json.dumps(package_json(slug), indent=2) + "\n"),
        ("app.json", json.dumps(app_json(app_name, slug), indent=2) + "\n"),
        (WORKFLOW_PATH, yaml.safe_dump(build_workflow(branch), sort_keys=False)),
    ])


def touches_workflows(manifest: PublishManifest) -> bool:
    return any(path.startswith(".github/workflows/") for path in manifest.paths)


def repo_url(owner: str, name: str) -> str:
    return f"https://github.com/{owner}/{slugify(name)}"


def actions_url(owner: str, name: str) -> str:
    """Where the build workflow's artifacts can be downloaded."""
    return f"{repo_url(owner, name)}/actions"
