import os
from config import Config
from database import film_store
from database.films_db import merged_path


def check_data():
    try:
        master = film_store.load_master_films()
        films = master.get('films', {})

        festivals = film_store.list_festivals()
        festival_files = sum(len(f['years']) for f in festivals)

        streaming = film_store.load_streaming_data()

        merged_exists = os.path.exists(merged_path())

        return {
            'status': 'healthy',
            'service': 'data',
            'message': 'Film data files are readable',
            'details': {
                'data_dir': Config.DATA_DIR,
                'films': {
                    'total': len(films),
                    'last_updated': master.get('last_updated')
                },
                'festivals': {
                    'count': len(festivals),
                    'files': festival_files
                },
                'streaming': {
                    'films': len(streaming['films']),
                    'country': streaming.get('country'),
                    'last_updated': streaming.get('last_updated')
                },
                'merged_file': merged_exists
            }
        }

    except FileNotFoundError as e:
        return {
            'status': 'unhealthy',
            'service': 'data',
            'message': f'Missing data file: {e.filename}'
        }
    except ValueError as e:
        return {
            'status': 'unhealthy',
            'service': 'data',
            'message': f'Invalid JSON: {str(e)}'
        }
    except Exception as e:
        return {
            'status': 'unhealthy',
            'service': 'data',
            'message': f'Unexpected error: {str(e)}'
        }
