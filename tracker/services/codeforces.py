import logging
from datetime import datetime, timezone

import requests
from django.conf import settings

logger = logging.getLogger(__name__)


class CodeforcesClient:
    """
    Thin wrapper over the public Codeforces API.

    Every call is attempted once. Network errors, non-OK statuses and
    malformed payloads are logged and degrade to None / [] so callers
    never have to handle remote failures.
    """

    def __init__(self, base_url=None, timeout=None, session=None):
        self.base_url = (base_url or getattr(settings, "CODEFORCES_API_URL", "https://codeforces.com/api")).rstrip("/")
        self.timeout = timeout or getattr(settings, "CODEFORCES_TIMEOUT_SECONDS", 30)
        self.session = session or requests.Session()

    def _call(self, method: str, params: dict):
        url = f"{self.base_url}/{method}"
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except requests.RequestException as e:
            logger.error(f"Codeforces connection error on {method} {params}: {e}")
            return None
        except ValueError as e:
            logger.error(f"Codeforces returned invalid JSON on {method}: {e}")
            return None

        if not isinstance(data, dict):
            logger.error(f"Codeforces returned an unexpected payload on {method}: {type(data).__name__}")
            return None
        if data.get('status') != 'OK':
            logger.warning(f"Codeforces API error on {method} {params}: {data.get('comment', '')}")
            return None
        result = data.get('result')
        if not isinstance(result, list):
            logger.error(f"Codeforces returned a non-list result on {method}")
            return None
        return result

    def get_profile(self, handle):
        if not handle:
            return None

        result = self._call("user.info", {'handles': handle})
        if not result:
            return None

        payload = result[0]
        if not isinstance(payload, dict):
            return None
        return {
            'rating': payload.get('rating') or 0,
            'max_rating': payload.get('maxRating') or 0,
        }

    def get_rating_history(self, handle):
        if not handle:
            return []

        result = self._call("user.rating", {'handle': handle}) or []
        history = []
        for row in result:
            try:
                old_rating = int(row['oldRating'])
                new_rating = int(row['newRating'])
                history.append({
                    'contest_id': int(row['contestId']),
                    'contest_name': row.get('contestName', ''),
                    'rank': int(row.get('rank', 0)),
                    'old_rating': old_rating,
                    'new_rating': new_rating,
                    'rating_change': new_rating - old_rating,
                    'participation_type': row.get('participationType') or 'CONTESTANT',
                    'contest_time': datetime.fromtimestamp(row['ratingUpdateTimeSeconds'], tz=timezone.utc),
                })
            except (AttributeError, KeyError, TypeError, ValueError) as e:
                logger.warning(f"Skipping malformed rating row for {handle}: {e}")
        return history

    def get_submissions(self, handle, start=1, count=None):
        """
        Fetches the submission history of a handle.
        count=None asks Codeforces for every submission.
        """
        if not handle:
            return []

        params = {'handle': handle, 'from': start}
        if count is not None:
            params['count'] = count

        result = self._call("user.status", params) or []
        submissions = []
        for sub in result:
            try:
                problem = sub.get('problem') or {}
                contest_id = sub.get('contestId', problem.get('contestId'))
                submissions.append({
                    'submission_id': int(sub['id']),
                    'contest_id': int(contest_id) if contest_id is not None else None,
                    'problem_index': problem.get('index', ''),
                    'problem_name': problem['name'],
                    'problem_rating': problem.get('rating'),
                    'verdict': sub.get('verdict', 'TESTING'),
                    'language': sub.get('programmingLanguage', ''),
                    'submission_time': datetime.fromtimestamp(sub['creationTimeSeconds'], tz=timezone.utc),
                })
            except (AttributeError, KeyError, TypeError, ValueError) as e:
                logger.warning(f"Skipping malformed submission for {handle}: {e}")
        return submissions
