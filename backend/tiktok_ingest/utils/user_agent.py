"""
Chromium User-Agent generator.

Builds a plausible desktop Chrome/Edge User-Agent from OS templates and a
version range instead of keeping a static list. Only Chromium-family strings
are produced so the declared browser matches the Playwright Chromium engine.
"""

import random


class UserAgentGenerator:
    """Generate realistic Chromium User-Agent strings"""

    OS_TEMPLATES = {
        'windows': [
            'Windows NT 10.0; Win64; x64',
        ],
        'macos': [
            'Macintosh; Intel Mac OS X 10_15_7',
            'Macintosh; Intel Mac OS X 14_5',
            'Macintosh; Intel Mac OS X 13_6',
        ],
        'linux': [
            'X11; Linux x86_64',
        ],
    }

    CHROME_VERSIONS = list(range(124, 132))

    WEBKIT_VERSION = '537.36'

    @staticmethod
    def _get_random_os(os_type=None):
        if os_type is None:
            # desktop traffic on TikTok web is mostly Windows
            os_type = random.choices(['windows', 'macos', 'linux'], weights=[6, 3, 1])[0]
        return random.choice(UserAgentGenerator.OS_TEMPLATES[os_type])

    @staticmethod
    def generate_chrome(os_type=None, chrome_version=None):
        """Mozilla/5.0 (OS) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/<v> Safari/537.36"""
        os_info = UserAgentGenerator._get_random_os(os_type)
        chrome_version = chrome_version or random.choice(UserAgentGenerator.CHROME_VERSIONS)

        return (f"Mozilla/5.0 ({os_info}) "
                f"AppleWebKit/{UserAgentGenerator.WEBKIT_VERSION} "
                f"(KHTML, like Gecko) "
                f"Chrome/{chrome_version}.0.0.0 "
                f"Safari/{UserAgentGenerator.WEBKIT_VERSION}")

    @staticmethod
    def generate_edge(os_type='windows'):
        """Chrome string with a trailing Edg/<v> token"""
        edge_version = random.choice(UserAgentGenerator.CHROME_VERSIONS)
        chrome = UserAgentGenerator.generate_chrome(os_type, chrome_version=edge_version)
        return f"{chrome} Edg/{edge_version}.0.0.0"

    @staticmethod
    def generate_random():
        """Chrome 80%, Edge 20%"""
        if random.random() < 0.80:
            return UserAgentGenerator.generate_chrome()
        return UserAgentGenerator.generate_edge()


def get_random_user_agent():
    return UserAgentGenerator.generate_random()


def get_chrome_user_agent():
    return UserAgentGenerator.generate_chrome()
