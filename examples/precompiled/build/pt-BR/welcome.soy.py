# This file was automatically generated from welcome.soy.
# Please don't edit this file by hand.

provide('welcome')


def _welcome_banner(opt_data=None, opt_ignored=None, opt_ij_data=None):
    opt_data = opt_data or {}
    output = []
    output.append('Bem-vindo de volta, ')
    output.append(soy.escape_html(opt_data.get('name')))
    output.append('!')
    return soy.ordain_content(''.join(output), soy.ContentKind.HTML)
welcome.banner = _welcome_banner


def _welcome_page(opt_data=None, opt_ignored=None, opt_ij_data=None):
    opt_data = opt_data or {}
    output = []
    output.append('<h1>')
    output.append(str(welcome.banner(opt_data, None, opt_ij_data)))
    output.append('</h1>')
    output.append(str(soy.get_delegate_fn(soy.get_del_template_id('welcome.promo'), opt_data.get('plan'), False)(opt_data, None, opt_ij_data)))
    return soy.ordain_content(''.join(output), soy.ContentKind.HTML)
welcome.page = _welcome_page


def _del_welcome_promo_(opt_data=None, opt_ignored=None, opt_ij_data=None):
    opt_data = opt_data or {}
    output = []
    output.append('<p>Assine o Pro hoje.</p>')
    return soy.ordain_content(''.join(output), soy.ContentKind.HTML)
soy.register_delegate_fn(soy.get_del_template_id('welcome.promo'), '', 0, _del_welcome_promo_)


def _del_welcome_promo_pro(opt_data=None, opt_ignored=None, opt_ij_data=None):
    opt_data = opt_data or {}
    output = []
    output.append('<p>Obrigado por ser assinante Pro.</p>')
    return soy.ordain_content(''.join(output), soy.ContentKind.HTML)
soy.register_delegate_fn(soy.get_del_template_id('welcome.promo'), 'pro', 0, _del_welcome_promo_pro)
