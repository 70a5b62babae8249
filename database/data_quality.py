"""Completeness statistics over the merged catalog"""


def has_enhanced_data(film):
    return bool(film.get('synopsis') or film.get('genres') or film.get('tmdb_rating'))


def has_any_offer(film):
    return bool(film.get('has_streaming') or film.get('has_rent') or film.get('has_buy'))


def _percent(part, total):
    return round(part / total * 100) if total > 0 else 0


def summarize(films):
    total = len(films)
    enhanced = sum(1 for f in films if has_enhanced_data(f))
    posters = sum(1 for f in films if f.get('poster_url'))
    streaming = sum(1 for f in films if has_any_offer(f))
    justwatch = sum(1 for f in films if f.get('justwatch_found'))

    return {
        'total_films': total,
        'enhanced': enhanced,
        'enhanced_percent': _percent(enhanced, total),
        'with_posters': posters,
        'with_posters_percent': _percent(posters, total),
        'with_streaming': streaming,
        'with_streaming_percent': _percent(streaming, total),
        'justwatch_found': justwatch,
        'justwatch_found_percent': _percent(justwatch, total)
    }


def films_in_festival(films, festival, year=None):
    return [
        f for f in films
        if any(
            fest['name'] == festival and (year is None or fest['year'] == year)
            for fest in f['festivals']
        )
    ]


def compute_data_quality(films, festival=None, year=None):
    """
    Data quality report for the whole catalog or one festival (and year)

    Returns:
        dict: summary plus a per-festival (or per-year) breakdown; films
              missing data are listed when a single festival year is requested
    """
    if festival is None:
        festivals = sorted({fest['name'] for f in films for fest in f['festivals']})
        return {
            'summary': summarize(films),
            'festivals': [
                {'name': name, **summarize(films_in_festival(films, name))}
                for name in festivals
            ]
        }

    selected = films_in_festival(films, festival, year)
    report = {
        'festival': festival,
        'year': year,
        'summary': summarize(selected)
    }

    if year is None:
        years = sorted({
            fest['year'] for f in selected for fest in f['festivals'] if fest['name'] == festival
        }, reverse=True)
        report['years'] = [
            {'year': y, **summarize(films_in_festival(selected, festival, y))}
            for y in years
        ]
    else:
        report['films'] = [
            {
                'id': f['id'],
                'title': f['title'],
                'enhanced': has_enhanced_data(f),
                'poster': bool(f.get('poster_url')),
                'mubi': bool(f.get('mubi_link')),
                'justwatch_found': bool(f.get('justwatch_found')),
                'streaming': has_any_offer(f)
            }
            for f in sorted(selected, key=lambda f: f['title'].lower())
        ]

    return report
