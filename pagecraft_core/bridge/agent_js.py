"""
In-page agent - JavaScript evaluated inside the customized document.

Each script is a self-contained function passed to Playwright's
page.evaluate / handle.evaluate. Locator format must stay identical to
pagecraft_core.targeting.locator (1-based same-tag index, lower-case tags).
"""

# Shared helpers, prepended to every script below.
_HELPERS = r"""
    const STEP_RE = /^([a-z_][a-z0-9._:-]*)\[([1-9][0-9]*)\]$/;
    const INVISIBLE = new Set(['head', 'script', 'style', 'noscript', 'template', 'meta', 'link', 'title', 'base']);

    const tagOf = (el) => el.tagName.toLowerCase();

    const stepOf = (el) => {
        const tag = tagOf(el);
        let index = 1;
        for (let sib = el.previousElementSibling; sib; sib = sib.previousElementSibling) {
            if (tagOf(sib) === tag) index++;
        }
        return '/' + tag + '[' + index + ']';
    };

    const locatorOf = (el) => {
        if (!el || el.nodeType !== 1) return null;
        if (!document.documentElement || !document.documentElement.contains(el)) return null;
        const parts = [];
        for (let cur = el; cur; cur = cur.parentElement) parts.unshift(stepOf(cur));
        return parts.join('');
    };

    const resolve = (locator) => {
        if (typeof locator !== 'string' || locator.charAt(0) !== '/') return null;
        const parts = locator.slice(1).split('/');
        let node = null;
        for (let i = 0; i < parts.length; i++) {
            const m = STEP_RE.exec(parts[i]);
            if (!m) return null;
            const tag = m[1];
            const want = parseInt(m[2], 10);
            const kids = i === 0 ? [document.documentElement] : Array.from(node.children);
            let seen = 0;
            let found = null;
            for (const kid of kids) {
                if (kid && tagOf(kid) === tag) {
                    seen++;
                    if (seen === want) { found = kid; break; }
                }
            }
            if (!found) return null;
            node = found;
        }
        return node;
    };
"""

LOCATOR_OF_JS = "(el) => {" + _HELPERS + """
    return locatorOf(el);
}"""

RESOLVE_JS = "(locator) => {" + _HELPERS + """
    return resolve(locator);
}"""

DOCUMENT_INFO_JS = "() => ({ url: window.location.href, title: document.title || '' })"

SNAPSHOT_JS = "() => {" + _HELPERS + r"""
    const px = (v) => {
        const n = parseFloat(v);
        return isNaN(n) ? 0 : n;
    };

    const ownText = (el) => {
        let text = '';
        for (const child of el.childNodes) {
            if (child.nodeType === Node.TEXT_NODE) text += ' ' + child.nodeValue;
        }
        return text.replace(/\s+/g, ' ').trim();
    };

    const snap = (el, locator, parentVisible) => {
        const tag = tagOf(el);
        const cs = window.getComputedStyle(el);
        const hiddenTag = INVISIBLE.has(tag);
        const visible = parentVisible && !hiddenTag && cs.display !== 'none' && cs.visibility !== 'hidden';
        const attrs = {};
        for (const attr of el.attributes) attrs[attr.name] = String(attr.value).slice(0, 300);
        const lineHeight = parseFloat(cs.lineHeight);
        const node = {
            locator: locator,
            tag: tag,
            attrs: attrs,
            text: hiddenTag ? '' : ownText(el),
            visible: visible,
            style: {
                fontSize: px(cs.fontSize),
                lineHeight: isNaN(lineHeight) ? null : lineHeight,
                position: cs.position || 'static',
                display: cs.display || 'inline',
                backgroundImage: cs.backgroundImage || 'none',
                marginTop: px(cs.marginTop),
                marginRight: px(cs.marginRight),
                marginBottom: px(cs.marginBottom),
                marginLeft: px(cs.marginLeft),
                paddingTop: px(cs.paddingTop),
                paddingRight: px(cs.paddingRight),
                paddingBottom: px(cs.paddingBottom),
                paddingLeft: px(cs.paddingLeft)
            },
            children: []
        };
        const counts = {};
        for (const child of el.children) {
            const childTag = tagOf(child);
            counts[childTag] = (counts[childTag] || 0) + 1;
            node.children.push(snap(child, locator + '/' + childTag + '[' + counts[childTag] + ']', visible));
        }
        return node;
    };

    const root = document.documentElement;
    return {
        url: window.location.href,
        title: document.title || '',
        root: snap(root, '/' + tagOf(root) + '[1]', true)
    };
}"""

MUTATE_JS = "(rule) => {" + _HELPERS + r"""
    const setStyle = (el, prop, raw) => {
        let value = String(raw).trim();
        let priority = '';
        if (/!important$/i.test(value)) {
            value = value.replace(/\s*!important$/i, '');
            priority = 'important';
        }
        el.style.setProperty(prop, value, priority);
    };

    const el = resolve(rule.locator);
    if (!el) return { status: 'not_found' };
    const params = rule.parameters || {};

    switch (rule.type) {
        case 'hide':
            el.style.setProperty('display', 'none', 'important');
            break;
        case 'remove':
            el.remove();
            break;
        case 'highlight':
            el.style.setProperty('outline', '3px solid ' + params.color);
            el.style.setProperty('outline-offset', '2px');
            el.style.setProperty('background-color', 'color-mix(in srgb, ' + params.color + ' 15%, transparent)');
            el.setAttribute('data-pagecraft-highlight', 'true');
            break;
        case 'style':
            for (const [prop, value] of Object.entries(params.styles || {})) setStyle(el, prop, value);
            break;
        case 'replace':
            if (params.mode === 'html') el.innerHTML = params.content;
            else el.textContent = params.content;
            break;
        case 'move': {
            const target = resolve(params.target);
            if (!target) return { status: 'target_not_found' };
            if (target === el || el.contains(target)) return { status: 'invalid_move' };
            if (params.position === 'before') target.before(el);
            else if (params.position === 'after') target.after(el);
            else target.appendChild(el);
            break;
        }
        default:
            return { status: 'unsupported', type: rule.type };
    }
    return { status: 'applied' };
}"""

# Installed once per document. Reports {kind, locator, tag} to the exposed
# binding; mousemove only reports when the target element changes and never
# touches layout or the DOM.
POINTER_LISTENERS_JS = "(binding) => {" + _HELPERS + """
    if (window.__pagecraftPointer) return false;
    window.__pagecraftPointer = true;
    let last = null;
    const report = (kind, el) => {
        if (!el || el.nodeType !== 1 || typeof window[binding] !== 'function') return;
        window[binding]({ kind: kind, locator: locatorOf(el), tag: tagOf(el) });
    };
    document.addEventListener('mousemove', (e) => {
        if (e.target === last) return;
        last = e.target;
        report('move', e.target);
    }, true);
    document.addEventListener('mousedown', (e) => report('down', e.target), true);
    return true;
}"""
