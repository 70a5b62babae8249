"""Catalog filtering, search and sorting"""
from dataclasses import dataclass, field
from typing import List, Optional


SORT_OPTIONS = ('year-desc', 'year-asc', 'title-asc', 'title-desc')


@dataclass
class FilterState:
    festivals: List[str] = field(default_factory=list)
    years: List[int] = field(default_factory=list)
    countries: List[str] = field(default_factory=list)
    genres: List[str] = field(default_factory=list)
    awarded_only: bool = False
    watchlist_only: bool = False
    show_streaming: bool = False
    show_rent_buy: bool = False
    selected_platforms: List[str] = field(default_factory=list)
    search_query: str = ''
    # None = show all, True = only found/available, False = only missing
    justwatch_found: Optional[bool] = None
    justwatch_available: Optional[bool] = None

    @classmethod
    def from_args(cls, args):
        """Build from request query args (werkzeug MultiDict)"""
        return cls(
            festivals=_multi(args, 'festival'),
            years=[int(y) for y in _multi(args, 'year') if y.isdigit()],
            countries=_multi(args, 'country'),
            genres=_multi(args, 'genre'),
            awarded_only=_flag(args.get('awarded')),
            watchlist_only=_flag(args.get('watchlist')),
            show_streaming=_flag(args.get('streaming')),
            show_rent_buy=_flag(args.get('rent_buy')),
            selected_platforms=_multi(args, 'platform'),
            search_query=args.get('q', '').strip(),
            justwatch_found=_tristate(args.get('justwatch_found')),
            justwatch_available=_tristate(args.get('justwatch_available'))
        )


def _multi(args, name):
    """Accept both ?genre=a&genre=b and ?genre=a,b"""
    values = []
    for raw in args.getlist(name):
        values.extend(v.strip() for v in raw.split(',') if v.strip())
    return values


def _flag(value):
    return (value or '').lower() in ('1', 'true', 'yes', 'on')


def _tristate(value):
    if value is None or value == '':
        return None
    return _flag(value)


def _has_provider(offers, platform):
    return any(o.get('provider') == platform for o in offers)


def matches_availability(film, filters):
    """Streaming first; rent/buy on a platform only counts if the film streams nowhere"""
    if filters.selected_platforms:
        for platform in filters.selected_platforms:
            if filters.show_streaming and _has_provider(film['streaming'], platform):
                return True
            if (filters.show_rent_buy
                    and (_has_provider(film['rent'], platform) or _has_provider(film['buy'], platform))
                    and not film['has_streaming']):
                return True
        return False

    if filters.show_streaming and film['has_streaming']:
        return True
    if filters.show_rent_buy and (film['has_rent'] or film['has_buy']):
        return True
    return False


def matches(film, filters, watchlist=None):
    if filters.festivals and not any(f['name'] in filters.festivals for f in film['festivals']):
        return False

    if filters.years and film['year'] not in filters.years:
        return False

    if filters.countries and film.get('country') not in filters.countries:
        return False

    if filters.genres and not any(g in filters.genres for g in film.get('genres') or []):
        return False

    if filters.watchlist_only and film['film_key'] not in (watchlist or set()):
        return False

    if filters.awarded_only and not film['awarded']:
        return False

    if filters.show_streaming or filters.show_rent_buy or filters.selected_platforms:
        if not matches_availability(film, filters):
            return False

    if filters.justwatch_found is not None and film['justwatch_found'] != filters.justwatch_found:
        return False

    if filters.justwatch_available is not None:
        available = bool(film['streaming'] or film['rent'] or film['buy'])
        if available != filters.justwatch_available:
            return False

    return True


def apply_filters(films, filters, watchlist=None):
    """
    Args:
        films: merged film dicts
        filters: FilterState
        watchlist: set of film keys, used when filters.watchlist_only is set
    """
    selected = [film for film in films if matches(film, filters, watchlist)]
    if filters.search_query:
        selected = search_films(selected, filters.search_query)
    return selected


def search_films(films, query):
    """Case-insensitive match on title or director"""
    query = query.lower()
    return [
        film for film in films
        if query in film['title'].lower() or query in (film.get('director') or '').lower()
    ]


def sort_films(films, sort_by):
    if sort_by == 'year-desc':
        return sorted(films, key=lambda f: f['year'] or 0, reverse=True)
    if sort_by == 'year-asc':
        return sorted(films, key=lambda f: f['year'] or 0)
    if sort_by == 'title-asc':
        return sorted(films, key=lambda f: f['title'].lower())
    if sort_by == 'title-desc':
        return sorted(films, key=lambda f: f['title'].lower(), reverse=True)
    return list(films)
